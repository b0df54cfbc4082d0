from hrms_services.payroll.calculator.standard_calculator import StandardPayrollCalculator


def test_standard_calculator_subtracts_deductions():
    calc = StandardPayrollCalculator()

    assert calc.net_salary(5000, 200) == 4800


def test_standard_calculator_treats_missing_as_zero():
    calc = StandardPayrollCalculator()

    assert calc.net_salary(None, None) == 0
    assert calc.net_salary(1200, None) == 1200
