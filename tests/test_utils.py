# tests/test_utils.py

import re

import pytest

from payportal.main.filters import currency_filter, whole_number_filter
from payportal.main.utils import (allowed_file, generate_batch_access_code,
                                  monthly_summary, search_payslips)
from payportal.models import Payslip


# --- Access codes ---

def test_batch_access_code_format():
    code = generate_batch_access_code('RV Associates', '3', 2025)
    assert re.match(r'^RVA-MAR25-[A-Z0-9]{4}$', code)


def test_batch_access_code_fallbacks():
    assert re.match(r'^DOC-XXX-[A-Z0-9]{4}$', generate_batch_access_code('', None, None))
    assert re.match(r'^DOC-XXX25-[A-Z0-9]{4}$', generate_batch_access_code(None, '13', 2025))


# --- Uploads ---

def test_allowed_file(app_with_db):
    assert allowed_file('march.xlsx')
    assert allowed_file('MARCH.CSV')
    assert not allowed_file('march.xls')
    assert not allowed_file('payroll')
    assert allowed_file('form16.pdf', 'DOCUMENT_EXTENSIONS')


# --- Monthly summary ---

def _payslip(period, department, net):
    return Payslip(employee_name='x', pay_period=period, department=department, net_salary=net)


def test_monthly_summary_groups_by_pay_period():
    payslips = [
        _payslip('January 2025', 'Stores', 1000),
        _payslip('March 2025', 'Stores', 3000),
        _payslip('March 2025', 'Plant', 5000),
        _payslip('March 2025', 'Plant', None),
        _payslip('Bonus run', 'Plant', 700),
    ]
    summary = monthly_summary(payslips)

    assert [row['pay_period'] for row in summary] == ['March 2025', 'January 2025', 'Bonus run']
    march = summary[0]
    assert march['total_payslips'] == 3
    assert march['departments_count'] == 2
    assert march['total_net_salary'] == 8000
    assert march['average_net_salary'] == pytest.approx(8000 / 3)
    assert (march['min_net_salary'], march['max_net_salary']) == (0, 5000)


def test_monthly_summary_of_nothing():
    assert monthly_summary([]) == []


# --- Search ---

def test_search_payslips(app_with_db):
    from payportal import db
    db.session.add_all([
        Payslip(employee_name='Asha Patel', employee_code='E001', designation='Helper', department='Stores',
                pay_period='March 2025'),
        Payslip(employee_name='Ravi Shah', employee_code='E002', designation='Operator', department='Plant',
                pay_period='March 2025'),
    ])
    db.session.commit()

    assert [p.employee_name for p in search_payslips(term='e002')] == ['Ravi Shah']
    assert [p.employee_name for p in search_payslips(term='stores')] == ['Asha Patel']
    assert search_payslips(term='march').count() == 2
    assert [p.employee_name for p in search_payslips(designation='Operator')] == ['Ravi Shah']
    assert search_payslips(department='Plant', employee='Asha Patel').count() == 0


# --- Template filters ---

def test_amount_filters():
    assert currency_filter(37875) == '37,875.00'
    assert currency_filter(None) is None
    assert whole_number_filter(37875.4) == '37,875'


# --- Seeding ---

def test_seed_data_is_idempotent(app_with_db):
    from payportal.models import Company, Designation
    from payportal.seed import DEFAULT_DESIGNATIONS, seed_data

    seed_data()
    seed_data()

    assert Company.query.count() == 1
    assert Designation.query.count() == len(DEFAULT_DESIGNATIONS)


def test_seed_cli_command(app_with_db):
    result = app_with_db.test_cli_runner().invoke(args=['seed'])
    assert 'Seeding complete.' in result.output
