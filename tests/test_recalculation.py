# tests/test_recalculation.py

import pytest


def _payslip(name, net_salary, **components):
    from payportal.models import Payslip
    values = {'basic_salary': 25000, 'hra': 10000, 'pf_deduction': 3000}
    values.update(components)
    return Payslip(employee_name=name, pay_period='March 2025', net_salary=net_salary, **values)


@pytest.fixture
def seeded_payslips(app_with_db):
    """Five payslips: two with zero net, one with no net and two already filled."""
    from payportal import db
    payslips = [
        _payslip('Zero One', 0),
        _payslip('Zero Two', 0.0, hra=0),
        _payslip('Empty', None),
        _payslip('Filled One', 5000),
        _payslip('Filled Two', 7000),
    ]
    db.session.add_all(payslips)
    db.session.commit()
    return {p.employee_name: p.id for p in payslips}


# --- Table store ---

def test_store_select_filters_and_orders(seeded_payslips):
    from payportal.payroll.store import TableStore
    store = TableStore()

    assert len(store.select('payslips')) == 5
    assert [r['employee_name'] for r in store.select('payslips', {'net_salary': None})] == ['Empty']
    names = [r['employee_name'] for r in store.select('payslips', {'net_salary': [5000, 7000]}, order_by='-net_salary')]
    assert names == ['Filled Two', 'Filled One']


def test_store_insert_update_delete(app_with_db):
    from payportal.payroll.store import TableStore
    store = TableStore()

    row = store.insert('companies', {'name': 'RV Associates'})
    assert row['id'] is not None
    assert store.update('companies', {'id': row['id']}, {'name': 'RV Associates Pvt Ltd'}) == 1
    assert store.select('companies')[0]['name'] == 'RV Associates Pvt Ltd'
    assert store.delete('companies', {'id': row['id']}) == 1
    assert store.select('companies') == []


def test_store_rejects_unknown_tables_and_columns(app_with_db):
    from payportal.payroll.store import StoreError, TableStore
    store = TableStore()

    with pytest.raises(StoreError):
        store.select('salaries')
    with pytest.raises(StoreError):
        store.select('payslips', {'salary': 1})
    with pytest.raises(StoreError):
        store.update('payslips', {'id': 1}, {'salary': 1})


def test_store_wraps_database_errors(app_with_db):
    from payportal.payroll.store import StoreError, TableStore
    store = TableStore()

    store.insert('companies', {'name': 'RV Associates'})
    with pytest.raises(StoreError):
        store.insert('companies', {'name': 'RV Associates'})
    # the session was rolled back and is usable again
    assert len(store.select('companies')) == 1


# --- Recalculation ---

def test_recalculate_uses_components_and_is_idempotent(seeded_payslips):
    from payportal.payroll.recalculation import SalaryRecalculator
    from payportal.payroll.store import TableStore
    recalculator = SalaryRecalculator(TableStore())
    payslip_id = seeded_payslips['Filled One']

    assert recalculator.recalculate(payslip_id)
    first = TableStore().select('payslips', {'id': payslip_id})[0]
    assert recalculator.recalculate(payslip_id)
    second = TableStore().select('payslips', {'id': payslip_id})[0]

    assert first['net_salary'] == second['net_salary'] == 32000
    assert first['total_earning_gross'] == second['total_earning_gross'] == 35000
    assert second['total_deductions'] == 3000


def test_recalculate_reports_a_missing_payslip(app_with_db):
    from payportal.payroll.recalculation import SalaryRecalculator
    assert SalaryRecalculator().recalculate(999) is False


def test_fix_all_only_touches_zero_or_empty_net(seeded_payslips):
    from payportal.models import Payslip
    from payportal.payroll.recalculation import SalaryRecalculator

    outcome = SalaryRecalculator().fix_all_zero_or_null_net_salary()

    assert outcome == {'success': True, 'attempted': 3, 'fixed_count': 3}
    by_name = {p.employee_name: p for p in Payslip.query.all()}
    assert by_name['Zero One'].net_salary == 32000
    assert by_name['Zero Two'].net_salary == 22000
    assert by_name['Empty'].net_salary == 32000
    assert by_name['Filled One'].net_salary == 5000
    assert by_name['Filled Two'].net_salary == 7000

    # nothing left to fix
    assert SalaryRecalculator().fix_all_zero_or_null_net_salary()['attempted'] == 0


class _FailingStore:
    """Store whose updates fail for one payslip id."""

    def __init__(self, rows, failing_id):
        self.rows = rows
        self.failing_id = failing_id
        self.updated = []

    def select(self, table, filters=None, order_by=None):
        return [r for r in self.rows if all(r.get(k) == v for k, v in (filters or {}).items())]

    def update(self, table, filters, patch):
        from payportal.payroll.store import StoreError
        if filters['id'] == self.failing_id:
            raise StoreError('disk full')
        self.updated.append(filters['id'])
        return 1


def test_fix_all_skips_rows_that_fail():
    from payportal.payroll.recalculation import SalaryRecalculator
    rows = [{'id': 1, 'net_salary': 0, 'basic_salary': 100},
            {'id': 2, 'net_salary': None, 'basic_salary': 200},
            {'id': 3, 'net_salary': 0, 'basic_salary': 300}]
    store = _FailingStore(rows, failing_id=2)

    outcome = SalaryRecalculator(store).fix_all_zero_or_null_net_salary()

    assert outcome == {'success': True, 'attempted': 3, 'fixed_count': 2}
    assert store.updated == [1, 3]
