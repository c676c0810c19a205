# ==============================================================================
# payportal/payroll/recalculation.py
# ------------------------------------------------------------------------------
# Repairs stored payslips whose totals are wrong (typically a zero or empty
# net salary) by recomputing them from their salary components.
# ==============================================================================

import logging

from .salary import compute_totals
from .store import StoreError, TableStore

logger = logging.getLogger(__name__)


class SalaryRecalculator:
    """Recomputes payslip totals through a TableStore. Safe to run repeatedly."""

    def __init__(self, store=None, table='payslips'):
        self.store = store or TableStore()
        self.table = table

    def recalculate(self, payslip_id):
        """
        Recomputes gross, deductions and net salary of one payslip from its
        components and stores them.

        Returns:
            bool: False when the payslip cannot be loaded or updated.
        """
        try:
            rows = self.store.select(self.table, {'id': payslip_id})
        except StoreError as e:
            logger.error(f"Could not load payslip {payslip_id}: {e}")
            return False
        if not rows:
            logger.warning(f"Payslip {payslip_id} not found, nothing to recalculate")
            return False

        totals = compute_totals(rows[0])
        try:
            self.store.update(self.table, {'id': payslip_id}, totals)
        except StoreError as e:
            logger.error(f"Could not update payslip {payslip_id}: {e}")
            return False

        logger.info(
            f"Payslip {payslip_id} recalculated: gross {totals['total_earning_gross']:,.2f}, "
            f"net {totals['net_salary']:,.2f}"
        )
        return True

    def find_zero_or_null_net_salary(self):
        """Payslips whose net salary is exactly 0 or missing, ordered by id."""
        candidates = {}
        for value in (0, None):
            for row in self.store.select(self.table, {'net_salary': value}, order_by='id'):
                candidates[row['id']] = row
        return [candidates[key] for key in sorted(candidates)]

    def fix_all_zero_or_null_net_salary(self):
        """
        Recalculates every payslip with a zero or empty net salary. A payslip that
        fails is logged and skipped.

        Returns:
            dict: success flag, number of payslips attempted and fixed.
        """
        try:
            candidates = self.find_zero_or_null_net_salary()
        except StoreError as e:
            logger.error(f"Could not select payslips to fix: {e}")
            return {'success': False, 'attempted': 0, 'fixed_count': 0}

        fixed = 0
        for payslip in candidates:
            if self.recalculate(payslip['id']):
                fixed += 1

        logger.info(f"Fixed {fixed} of {len(candidates)} payslips with zero or empty net salary")
        return {'success': True, 'attempted': len(candidates), 'fixed_count': fixed}
