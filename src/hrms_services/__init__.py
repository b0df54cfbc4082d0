"""HRMS data-access services.

This package is organized by feature modules (attendance, payroll, profiles)
with a thin Flask controller layer on top of cached, retrying services.
"""
