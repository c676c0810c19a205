# ==============================================================================
# payportal/exports.py
# ------------------------------------------------------------------------------
# Exports payslip lists as Excel, CSV or PDF. Each exporter takes plain row
# dicts plus the (field, label) columns to write, in order.
# ==============================================================================

import io
import logging
from datetime import datetime

import pandas as pd
import pdfkit

from payportal.payroll.fields import NUMERIC_FIELDS

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    ('employee_name', 'Employee Name'),
    ('employee_code', 'Employee Code'),
    ('designation', 'Designation'),
    ('department', 'Department'),
    ('pay_period', 'Pay Period'),
    ('working_days', 'Working Days'),
    ('present_days', 'Present Days'),
    ('basic_salary', 'Basic Salary'),
    ('hra', 'HRA'),
    ('earned_basic', 'Earned Basic'),
    ('earned_hra', 'Earned HRA'),
    ('transport_allowance', 'Transport Allowance'),
    ('medical_allowance', 'Medical Allowance'),
    ('other_allowances', 'Other Allowances'),
    ('total_earning_gross', 'Gross Earnings'),
    ('pf_deduction', 'PF'),
    ('tax_deduction', 'Tax'),
    ('insurance_deduction', 'ESIC'),
    ('other_deductions', 'Other Deductions'),
    ('total_deductions', 'Total Deductions'),
    ('net_salary', 'Net Salary'),
    ('bank_name', 'Bank Name'),
    ('bank_account_number', 'Account Number'),
    ('ifsc_code', 'IFSC'),
]

MIMETYPES = {
    'xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    'csv': 'text/csv',
    'pdf': 'application/pdf',
}


class ExportError(Exception):
    pass


def payslip_rows(payslips):
    """Plain dicts for a list of Payslip models."""
    return [payslip.to_dict() for payslip in payslips]


def _frame(rows, columns):
    fields = [field for field, _ in columns]
    frame = pd.DataFrame([{field: row.get(field) for field in fields} for row in rows], columns=fields)
    return frame.rename(columns=dict(columns))


def to_excel_bytes(rows, columns=EXPORT_COLUMNS, sheet_name='Payslips'):
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        _frame(rows, columns).to_excel(writer, sheet_name=sheet_name, index=False)
    return buffer.getvalue()


def to_csv_bytes(rows, columns=EXPORT_COLUMNS):
    return _frame(rows, columns).to_csv(index=False).encode('utf-8')


def _format_amount(value):
    try:
        return "{:,.2f}".format(float(value))
    except (TypeError, ValueError):
        return ''


def to_html_table(rows, columns=EXPORT_COLUMNS, title='Payslips'):
    """HTML page with one table; amount columns get thousands separators."""
    frame = _frame(rows, columns)
    formatters = {label: _format_amount for field, label in columns if field in NUMERIC_FIELDS}
    table = frame.to_html(index=False, na_rep='', formatters=formatters, border=1)
    return (
        '<html><head><meta charset="utf-8"><style>'
        'body{font-family:sans-serif;font-size:9px}table{border-collapse:collapse}'
        'td,th{padding:2px 4px}</style></head><body>'
        f'<h3>{title}</h3>{table}</body></html>'
    )


def html_to_pdf(html, wkhtmltopdf_path=None):
    """Renders HTML to PDF bytes with wkhtmltopdf."""
    try:
        configuration = pdfkit.configuration(wkhtmltopdf=wkhtmltopdf_path) if wkhtmltopdf_path else None
        return pdfkit.from_string(html, False, configuration=configuration,
                                  options={'page-size': 'A4', 'orientation': 'Landscape', 'encoding': 'UTF-8'})
    except (IOError, OSError) as e:
        logger.error(f"PDF generation failed: {e}", exc_info=True)
        raise ExportError(f"PDF generation failed: {e}") from e


def to_pdf_bytes(rows, columns=EXPORT_COLUMNS, title='Payslips', wkhtmltopdf_path=None):
    return html_to_pdf(to_html_table(rows, columns, title), wkhtmltopdf_path)


def export_filename(fmt, label=None, now=None):
    stamp = (now or datetime.now()).strftime('%Y%m%d_%H%M%S')
    prefix = f"payslips_{label}" if label else 'payslips'
    return f"{prefix}_{stamp}.{fmt}"
