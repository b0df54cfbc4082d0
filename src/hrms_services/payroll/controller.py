from __future__ import annotations

import logging

from flask import Flask, request, session

from ..common.web import admin_required, json_result, login_required
from ..core.enums import PayrollStatus
from ..core.exceptions import DomainError, NotFoundError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    payroll = container.payroll_service

    @app.route("/api/payroll", methods=["GET"], endpoint="payroll_list")
    @admin_required
    def list_payroll():
        try:
            page = payroll.get_payroll_by_company(
                str(session.get("company_id") or ""),
                page=int(request.args.get("page", 1)),
                page_size=int(request.args.get("page_size", 50)),
            )
        except ValueError:
            return json_result(False, "Invalid pagination parameters", 400)
        except DomainError as e:
            return json_result(False, e.message, 400)
        except Exception:
            logger.exception("listing payroll failed")
            return json_result(False, "System error while loading payroll", 500)
        return json_result(
            True,
            "",
            data=[p.to_dict() for p in page.data],
            count=page.count,
            has_more=page.has_more,
            page=page.page,
        )

    @app.route("/api/payroll/me", methods=["GET"], endpoint="payroll_me")
    @login_required
    def my_payroll():
        try:
            row = payroll.get_payroll_by_user_and_month(
                str(session["user_id"]),
                int(request.args["month"]),
                int(request.args["year"]),
            )
        except (KeyError, ValueError):
            return json_result(False, "month and year are required", 400)
        except DomainError as e:
            return json_result(False, e.message, 400)
        except Exception:
            logger.exception("loading payroll for user %s failed", session.get("user_id"))
            return json_result(False, "System error while loading payroll", 500)
        if row is None:
            return json_result(False, "No payroll for this period", 404)
        return json_result(True, "", data=row.to_dict())

    @app.route("/api/payroll/process", methods=["POST"], endpoint="payroll_process")
    @admin_required
    def process():
        data = request.get_json(silent=True) or {}
        try:
            rows = payroll.process_payroll(
                company_id=str(session.get("company_id") or ""),
                month=int(data["month"]),
                year=int(data["year"]),
                employee_ids=[str(e) for e in data.get("employee_ids", [])],
                base_salary=data.get("base_salary"),
                deductions=data.get("deductions"),
            )
        except (KeyError, ValueError, TypeError):
            return json_result(False, "month, year and employee_ids are required", 400)
        except DomainError as e:
            return json_result(False, e.message, 400)
        except Exception:
            logger.exception("processing payroll failed")
            return json_result(False, "Failed to process payroll", 500)
        return json_result(True, f"Processed payroll for {len(rows)} employee(s)", data=[p.to_dict() for p in rows])

    @app.route("/api/payroll/<payroll_id>/status", methods=["POST"], endpoint="payroll_status")
    @admin_required
    def update_status(payroll_id: str):
        data = request.get_json(silent=True) or {}
        try:
            row = payroll.update_payroll_status(payroll_id, PayrollStatus(data.get("status")))
        except ValueError:
            return json_result(False, "Unknown payroll status", 400)
        except NotFoundError as e:
            return json_result(False, e.message, 404)
        except DomainError as e:
            return json_result(False, e.message, 400)
        except Exception:
            logger.exception("updating payroll %s failed", payroll_id)
            return json_result(False, "Failed to update payroll", 500)
        return json_result(True, f"Payroll marked {row.status.value}", data=row.to_dict())
