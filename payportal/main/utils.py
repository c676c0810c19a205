# ==============================================================================
# payportal/main/utils.py
# ------------------------------------------------------------------------------
# Helpers for the routes: upload checks, document access codes, payslip
# search and the monthly summary shown on the dashboard.
# ==============================================================================
import os
import secrets
import string
from datetime import date

import pandas as pd
from flask import current_app
from sqlalchemy import or_

from payportal.models import Payslip

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def allowed_file(filename, config_key='ALLOWED_EXTENSIONS'):
    """Checks if the file extension is allowed based on the app config."""
    return '.' in filename and \
           os.path.splitext(filename)[1].lower() in current_app.config[config_key]


def _random_code(length):
    return ''.join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


def generate_batch_access_code(company_name, month, year):
    """
    Access code shared by a batch of documents, e.g. "RVA-MAR25-7K2Q":
    company prefix, month abbreviation with two-digit year, random suffix.
    """
    prefix = (company_name or '')[:3].upper() or 'DOC'
    try:
        month_code = date(2000, int(month), 1).strftime('%b').upper()
    except (TypeError, ValueError):
        month_code = 'XXX'
    year_code = str(year)[2:] if year else ''
    return f"{prefix}-{month_code}{year_code}-{_random_code(4)}"


def search_payslips(query=None, term=None, designation=None, department=None, employee=None):
    """
    Filters a Payslip query. `term` matches name, code, id, designation,
    department or pay period; the other filters match exactly.
    """
    query = query if query is not None else Payslip.query
    if term:
        like = f"%{term.strip()}%"
        query = query.filter(or_(
            Payslip.employee_name.ilike(like),
            Payslip.employee_code.ilike(like),
            Payslip.employee_id.ilike(like),
            Payslip.designation.ilike(like),
            Payslip.department.ilike(like),
            Payslip.pay_period.ilike(like),
        ))
    if designation:
        query = query.filter(Payslip.designation == designation)
    if department:
        query = query.filter(Payslip.department == department)
    if employee:
        query = query.filter(Payslip.employee_name == employee)
    return query


def monthly_summary(payslips):
    """
    Per pay period: payslip count, distinct departments and total, average,
    minimum and maximum net salary. Newest period first.
    """
    records = [
        {'pay_period': p.pay_period, 'department': p.department, 'net_salary': p.net_salary or 0.0}
        for p in payslips
    ]
    if not records:
        return []

    df = pd.DataFrame(records)
    grouped = df.groupby('pay_period').agg(
        total_payslips=('net_salary', 'size'),
        departments_count=('department', 'nunique'),
        total_net_salary=('net_salary', 'sum'),
        average_net_salary=('net_salary', 'mean'),
        min_net_salary=('net_salary', 'min'),
        max_net_salary=('net_salary', 'max'),
    ).reset_index()

    # Pay periods are "March 2025"-style labels; unparseable ones sort last
    grouped['_period'] = pd.to_datetime(grouped['pay_period'], format='%B %Y', errors='coerce')
    grouped = grouped.sort_values('_period', ascending=False, na_position='last').drop(columns='_period')
    return grouped.to_dict(orient='records')
