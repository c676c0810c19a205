# ==============================================================================
# payportal/payroll/converter.py
# ------------------------------------------------------------------------------
# Turns extracted spreadsheet rows into payslip records. Every recognized
# column is written to its payslip field, missing totals are computed, and the
# untouched source row is kept alongside for audit.
# ==============================================================================

import logging
from datetime import date

from .fields import (CANONICAL_FIELDS, FIELD_SOURCE_COLUMNS, STRICT_FIELD_COLUMNS,
                     STRICT_OTHER_DEDUCTION_COLUMNS, HIGH, category_of)
from .normalizer import ColumnMapping, normalize_text
from .salary import coerce_value, compute_gross, compute_deductions, to_number
from .structure import is_blank

logger = logging.getLogger(__name__)


class PayslipRecord:
    """
    A payslip ready to be stored: the well-known fields as attributes, plus the
    columns that matched no field (`extra_fields`), the full source row
    (`original_data`) and the column mappings used to build it.
    """

    def __init__(self, **values):
        unknown = set(values) - set(CANONICAL_FIELDS)
        if unknown:
            raise TypeError(f"Unknown payslip fields: {', '.join(sorted(unknown))}")
        for name in CANONICAL_FIELDS:
            setattr(self, name, values.get(name, self._default(name)))
        self.extra_fields = {}
        self.original_data = {}
        self.column_mappings = []

    @staticmethod
    def _default(name):
        if name == 'serial_number':
            return None
        return coerce_value(name, None)

    def component_values(self):
        return {name: getattr(self, name) for name in CANONICAL_FIELDS}

    def to_dict(self):
        data = self.component_values()
        data['extra_fields'] = dict(self.extra_fields)
        data['original_data'] = dict(self.original_data)
        data['column_mappings'] = list(self.column_mappings)
        return data

    def __repr__(self):
        return f'<PayslipRecord {self.employee_code or "?"}: {self.employee_name or "?"}>'


class ConversionReport:
    """Records converted from a batch of rows plus the rows that failed."""

    def __init__(self):
        self.records = []
        self.failures = []  # (row position, message)

    @property
    def success_count(self):
        return len(self.records)

    @property
    def failure_count(self):
        return len(self.failures)


def current_pay_period(today=None):
    return (today or date.today()).strftime('%B %Y')


def _resolve_defaults(defaults):
    resolved = {
        'pay_period': current_pay_period(),
        'department': '',
        'company_name': '',
        'company_address': '',
    }
    resolved.update({k: v for k, v in (defaults or {}).items() if v})
    return resolved


def _first_filled(row, columns):
    for column in columns:
        value = row.get(column)
        if not is_blank(value):
            return value
    return None


def _candidate_columns(field_name, mapped_columns, row):
    """
    Source columns for a field in the order they are tried: mapped columns
    ranked by the field's lookup chain, then chain columns nobody mapped.
    """
    chain = [normalize_text(name) for name in FIELD_SOURCE_COLUMNS.get(field_name, ())]

    def rank(column):
        text = normalize_text(column)
        return chain.index(text) if text in chain else len(chain)

    ordered = sorted(mapped_columns, key=rank)
    for wanted in chain:
        for column in row:
            if column not in ordered and normalize_text(column) == wanted:
                ordered.append(column)
    return ordered


def _fill_identity_defaults(record, defaults):
    if not record.employee_id:
        record.employee_id = record.employee_code
    for name in ('pay_period', 'department', 'company_name', 'company_address'):
        if not getattr(record, name):
            setattr(record, name, defaults[name])


def _apply_fallback_totals(record, supplied):
    """Computes only the totals the source did not provide."""
    values = record.component_values()
    if 'total_earning_gross' not in supplied:
        record.total_earning_gross = compute_gross(values)
    if 'total_deductions' not in supplied:
        record.total_deductions = compute_deductions(values)
    if 'net_salary' not in supplied:
        record.net_salary = record.total_earning_gross - record.total_deductions


def convert_row(row, mappings, defaults=None):
    """
    Converts one row of the flexible path.

    Args:
        row (dict): Column key -> raw cell value.
        mappings (list): ColumnMapping objects (or their dicts) for the row's columns.
        defaults (dict): Optional pay_period, department, company_name and
            company_address used when the row has none.

    Returns:
        PayslipRecord
    """
    defaults = _resolve_defaults(defaults)
    mappings = [m if isinstance(m, ColumnMapping) else ColumnMapping.from_dict(m) for m in mappings]

    columns_by_field = {}
    for mapping in mappings:
        if mapping.is_mapped:
            columns_by_field.setdefault(mapping.suggested_field, []).append(mapping.detected_column)

    values, supplied = {}, set()
    for field_name in CANONICAL_FIELDS:
        columns = _candidate_columns(field_name, columns_by_field.get(field_name, []), row)
        raw = _first_filled(row, columns)
        if raw is not None:
            values[field_name] = coerce_value(field_name, raw)
            supplied.add(field_name)

    record = PayslipRecord(**values)
    _fill_identity_defaults(record, defaults)
    _apply_fallback_totals(record, supplied)

    mapped_columns = {m.detected_column for m in mappings if m.is_mapped}
    record.extra_fields = {column: value for column, value in row.items() if column not in mapped_columns}
    record.original_data = dict(row)
    record.column_mappings = [m.to_dict() for m in mappings]
    return record


def strict_column_mappings():
    """The fixed template mapping, in the same shape as flexible mappings."""
    mappings = []
    for field_name, columns in STRICT_FIELD_COLUMNS.items():
        for column in columns:
            mappings.append(ColumnMapping(column, field_name, category_of(field_name), HIGH))
    for column in STRICT_OTHER_DEDUCTION_COLUMNS:
        mappings.append(ColumnMapping(column, 'other_deductions', category_of('other_deductions'), HIGH))
    return mappings


def convert_strict_row(row, defaults=None):
    """
    Converts one row of the strict payroll template. Itemized deductions
    (GPA, hostel, canteen, bank advances, ...) are summed into other_deductions.
    """
    defaults = _resolve_defaults(defaults)

    values, supplied = {}, set()
    for field_name, columns in STRICT_FIELD_COLUMNS.items():
        raw = _first_filled(row, columns)
        if raw is not None:
            values[field_name] = coerce_value(field_name, raw)
            supplied.add(field_name)

    itemized = [row.get(column) for column in STRICT_OTHER_DEDUCTION_COLUMNS]
    if any(not is_blank(value) for value in itemized):
        values['other_deductions'] = sum(to_number(value) for value in itemized)

    record = PayslipRecord(**values)
    _fill_identity_defaults(record, defaults)
    _apply_fallback_totals(record, supplied)

    known = {column for columns in STRICT_FIELD_COLUMNS.values() for column in columns}
    known.update(STRICT_OTHER_DEDUCTION_COLUMNS)
    record.extra_fields = {column: value for column, value in row.items() if column not in known}
    record.original_data = dict(row)
    record.column_mappings = [m.to_dict() for m in strict_column_mappings()]
    return record


def _convert_each(rows, convert):
    report = ConversionReport()
    for position, row in enumerate(rows, start=1):
        try:
            report.records.append(convert(row))
        except Exception as e:
            logger.warning(f"Skipping row {position}: conversion failed ({e})", exc_info=True)
            report.failures.append((position, str(e)))
    return report


def convert_rows(rows, mappings, defaults=None):
    """Converts every row; a row that fails is reported and skipped."""
    return _convert_each(rows, lambda row: convert_row(row, mappings, defaults))


def convert_strict_rows(rows, defaults=None):
    return _convert_each(rows, lambda row: convert_strict_row(row, defaults))
