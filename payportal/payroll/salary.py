# ==============================================================================
# payportal/payroll/salary.py
# ------------------------------------------------------------------------------
# Salary arithmetic shared by the import converter, the payslip form and the
# recalculation service.
# ==============================================================================

import re
import math
import logging

from .fields import INTEGER_FIELDS, TEXT_FIELDS

logger = logging.getLogger(__name__)

_NUMBER_NOISE = re.compile(r'[,\s₹$]|^rs\.?|^inr', re.IGNORECASE)

# Earned amounts take precedence over nominal ones when both are filled.
EARNING_COMPONENTS = (
    ('earned_basic', 'basic_salary'),
    ('earned_hra', 'hra'),
    ('earned_os',),
    ('other_earning', 'other_allowances'),
    ('performance_allowance',),
    ('skill_allowance',),
    ('attendance_incentive',),
    ('transport_allowance',),
    ('medical_allowance',),
)

DEDUCTION_COMPONENTS = (
    'pf_deduction',
    'tax_deduction',
    'insurance_deduction',
    'canteen_deduction',
    'advance_deduction',
    'other_deductions',
    'service_charge',
)

# --- Work-detail estimation rates ---
HRA_RATE = 0.40
OTHER_ALLOWANCE_RATE = 0.05
TRANSPORT_ALLOWANCE = 2000
MEDICAL_ALLOWANCE = 1500
PF_RATE = 0.12
TDS_RATE = 0.10
ESI_RATE = 0.0175


def to_number(value):
    """
    Parses a cell or form value as a float. Blank and unparseable values are 0;
    thousands separators and currency marks are ignored.
    """
    if value is None or isinstance(value, bool):
        return float(value or 0)
    if isinstance(value, (int, float)):
        return 0.0 if isinstance(value, float) and math.isnan(value) else float(value)
    text = _NUMBER_NOISE.sub('', str(value).strip())
    negative = text.startswith('(') and text.endswith(')')
    text = text.strip('()')
    if not text:
        return 0.0
    try:
        number = float(text)
    except ValueError:
        logger.debug(f"Could not parse '{value}' as a number, using 0")
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return -number if negative else number


def to_int(value):
    return int(to_number(value))


def coerce_value(field_name, value):
    """Converts a raw value to the type of the given canonical field."""
    if field_name in INTEGER_FIELDS:
        return to_int(value)
    if field_name in TEXT_FIELDS:
        if value is None:
            return ''
        if isinstance(value, float) and value.is_integer():
            # codes and account numbers typed as numbers
            value = int(value)
        return str(value).strip()
    return to_number(value)


def _get(values, name):
    return to_number(values.get(name))


def compute_gross(values):
    """Sum of the earning components of a payslip mapping."""
    total = 0.0
    for names in EARNING_COMPONENTS:
        for name in names:
            amount = _get(values, name)
            if amount:
                total += amount
                break
    return total


def compute_deductions(values):
    return sum(_get(values, name) for name in DEDUCTION_COMPONENTS)


def compute_totals(values):
    """
    Gross, deductions and net computed from the components alone, ignoring any
    totals already present in `values`.
    """
    gross = compute_gross(values)
    deductions = compute_deductions(values)
    return {
        'total_earning_gross': gross,
        'total_deductions': deductions,
        'net_salary': gross - deductions,
    }


def estimate_components(days_worked, hours_per_day, hourly_rate):
    """
    Suggests salary components from work details: basic pay is hours worked
    times the hourly rate, allowances and deductions follow from it.
    """
    basic = to_number(days_worked) * to_number(hours_per_day) * to_number(hourly_rate)
    return {
        'basic_salary': basic,
        'hra': basic * HRA_RATE,
        'transport_allowance': float(TRANSPORT_ALLOWANCE),
        'medical_allowance': float(MEDICAL_ALLOWANCE),
        'other_allowances': basic * OTHER_ALLOWANCE_RATE,
        'pf_deduction': basic * PF_RATE,
        'tax_deduction': basic * TDS_RATE,
        'insurance_deduction': basic * ESI_RATE,
        'other_deductions': 0.0,
    }
