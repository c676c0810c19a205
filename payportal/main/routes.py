# ==============================================================================
# payportal/main/routes.py
# ------------------------------------------------------------------------------
# Defines all user-facing routes for the main application blueprint.
# This file acts as the main controller for the web interface.
# ==============================================================================

import os
import json
import uuid
from datetime import datetime
from functools import wraps
from flask import (render_template, request, flash, redirect, url_for,
                   current_app, session, Response)
from werkzeug.utils import secure_filename
from sqlalchemy.exc import IntegrityError

from payportal import db
from payportal.main import bp
from payportal.models import (Payslip, PayrollUpload, PayrollData, Company, Designation, Document,
                              DocumentAccessLog)
from payportal.payroll import (SpreadsheetReadError, read_sheet, validate_flexible, validate_strict,
                               convert_rows, convert_strict_rows, compute_totals, estimate_components)
from payportal.payroll.recalculation import SalaryRecalculator
from payportal.payroll.validator import summarize_mappings
from payportal.storage import BlobStorageError, get_storage
from payportal.exports import (EXPORT_COLUMNS, MIMETYPES, ExportError, payslip_rows, to_excel_bytes,
                               to_csv_bytes, to_pdf_bytes, html_to_pdf, export_filename)
from payportal.main.forms import (AdminLoginForm, PayslipForm, UploadForm, StrictUploadForm, PayrollRowForm,
                                  CompanyForm, DesignationForm, DocumentUploadForm, DocumentEditForm,
                                  AccessCodeForm)
from payportal.main.utils import (allowed_file, generate_batch_access_code, search_payslips,
                                  monthly_summary)

# --- Helper Functions ---

def admin_required(f):
    """Decorator to protect admin routes with session-based authentication."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not session.get('admin_logged_in'):
            flash('Please log in to the admin panel to access this page.', 'warning')
            return redirect(url_for('main.admin_login'))
        return f(*args, **kwargs)
    return decorated_function

def _conversion_defaults(pay_period=None, department=None):
    """Values used for payslip fields a sheet leaves empty."""
    return {
        'pay_period': pay_period,
        'department': department or current_app.config.get('DEFAULT_DEPARTMENT'),
        'company_name': current_app.config.get('COMPANY_NAME'),
        'company_address': current_app.config.get('COMPANY_ADDRESS'),
    }

def _save_uploaded_sheet(file):
    """Stores an uploaded sheet in UPLOAD_FOLDER and returns its path."""
    filename = secure_filename(file.filename)
    filepath = os.path.join(current_app.config['UPLOAD_FOLDER'], f"{uuid.uuid4().hex[:8]}_{filename}")
    os.makedirs(current_app.config['UPLOAD_FOLDER'], exist_ok=True)
    file.save(filepath)
    return filepath

def _add_payslips(records, upload_id=None):
    """Adds converted records to the session; the caller commits."""
    for record in records:
        db.session.add(Payslip(upload_id=upload_id, **record.to_dict()))

def _document_form_choices(form):
    form.company_id.choices = [(c.id, c.name) for c in Company.query.order_by(Company.name).all()]
    form.designation_id.choices = [(d.id, d.title) for d in Designation.query.order_by(Designation.title).all()]

def _payslip_filters():
    return {
        'term': request.args.get('q', '').strip(),
        'designation': request.args.get('designation', '').strip(),
        'department': request.args.get('department', '').strip(),
        'employee': request.args.get('employee', '').strip(),
    }

# --- Main Application Routes ---

@bp.route('/')
def index():
    """Landing page linking to the client portal and the admin panel."""
    return render_template('index.html')

# --- Admin Panel Routes ---

@bp.route('/admin/login', methods=['GET', 'POST'])
def admin_login():
    """Handles admin login."""
    form = AdminLoginForm()
    if form.validate_on_submit():
        if form.password.data == current_app.config.get('ADMIN_PASSWORD', 'default_password'):
            session['admin_logged_in'] = True
            flash('You are now logged in.', 'success')
            return redirect(url_for('main.admin_dashboard'))
        else:
            flash('Invalid password.', 'danger')
    return render_template('admin_login.html', form=form, title='Admin Login')

@bp.route('/admin/logout')
def admin_logout():
    """Handles admin logout."""
    session.pop('admin_logged_in', None)
    flash('You have been logged out.', 'info')
    return redirect(url_for('main.index'))

@bp.route('/admin')
@admin_required
def admin_dashboard():
    """Admin dashboard with the monthly payslip summary."""
    payslips = Payslip.query.all()
    summary = monthly_summary(payslips)
    counts = {
        'payslips': len(payslips),
        'uploads': PayrollUpload.query.count(),
        'documents': Document.query.filter_by(is_active=True).count(),
        'zero_net': Payslip.query.filter((Payslip.net_salary == 0) | (Payslip.net_salary.is_(None))).count(),
    }
    return render_template('admin.html', summary=summary, counts=counts)

# --- Payslips ---

@bp.route('/admin/payslips')
@admin_required
def payslips():
    """Lists payslips, optionally filtered by the search box and dropdowns."""
    filters = _payslip_filters()
    items = search_payslips(**filters).order_by(Payslip.created_at.desc()).all()
    designations = [d for (d,) in db.session.query(Payslip.designation).distinct().order_by(Payslip.designation) if d]
    departments = [d for (d,) in db.session.query(Payslip.department).distinct().order_by(Payslip.department) if d]
    return render_template('payslips.html', payslips=items, filters=filters,
                           designations=designations, departments=departments)

def _fill_payslip(payslip, form):
    """Copies the form into a payslip and works out its totals."""
    for name in PayslipForm.TEXT_FIELDS:
        setattr(payslip, name, (getattr(form, name).data or '').strip())
    payslip.employee_id = payslip.employee_id or payslip.employee_code or ''
    payslip.department = payslip.department or current_app.config.get('DEFAULT_DEPARTMENT')

    amounts = {name: getattr(form, name).data for name in PayslipForm.AMOUNT_FIELDS}
    work = (form.days_worked.data, form.hours_per_day.data, form.hourly_rate.data)
    if all(value is not None for value in work):
        for name, value in estimate_components(*work).items():
            if amounts.get(name) is None:
                amounts[name] = value
    for name, value in amounts.items():
        setattr(payslip, name, value or 0.0)

    payslip.working_days = form.working_days.data or 0
    payslip.present_days = form.present_days.data or 0
    payslip.company_name = payslip.company_name or current_app.config.get('COMPANY_NAME')
    payslip.company_address = payslip.company_address or current_app.config.get('COMPANY_ADDRESS')

    totals = compute_totals(payslip.to_dict())
    payslip.total_earning_gross = totals['total_earning_gross']
    payslip.total_deductions = totals['total_deductions']
    payslip.net_salary = totals['net_salary'] if form.net_salary.data is None else form.net_salary.data

@bp.route('/admin/payslip/add', methods=['GET', 'POST'])
@admin_required
def add_payslip():
    form = PayslipForm()
    if request.method == 'GET':
        form.pay_period.data = datetime.now().strftime('%B %Y')
    if form.validate_on_submit():
        try:
            payslip = Payslip()
            _fill_payslip(payslip, form)
            db.session.add(payslip)
            db.session.commit()
            flash(f'Payslip for "{payslip.employee_name}" created.', 'success')
            return redirect(url_for('main.view_payslip', payslip_id=payslip.id))
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Saving payslip failed: {e}", exc_info=True)
            flash(f'Could not save the payslip. Error: {e}', 'danger')
    return render_template('payslip_form.html', form=form, title='New Payslip')

@bp.route('/admin/payslip/edit/<int:payslip_id>', methods=['GET', 'POST'])
@admin_required
def edit_payslip(payslip_id):
    payslip = Payslip.query.get_or_404(payslip_id)
    form = PayslipForm(obj=payslip)
    if request.method == 'GET':
        form.net_salary.data = None
    if form.validate_on_submit():
        try:
            _fill_payslip(payslip, form)
            db.session.commit()
            flash(f'Payslip for "{payslip.employee_name}" updated.', 'success')
            return redirect(url_for('main.view_payslip', payslip_id=payslip.id))
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Updating payslip {payslip_id} failed: {e}", exc_info=True)
            flash(f'Could not save the payslip. Error: {e}', 'danger')
    return render_template('payslip_form.html', form=form, title=f'Edit Payslip: {payslip.employee_name}')

@bp.route('/admin/payslip/delete/<int:payslip_id>', methods=['POST'])
@admin_required
def delete_payslip(payslip_id):
    payslip = Payslip.query.get_or_404(payslip_id)
    name = payslip.employee_name
    db.session.delete(payslip)
    db.session.commit()
    flash(f'Payslip for "{name}" deleted.', 'success')
    return redirect(url_for('main.payslips'))

@bp.route('/admin/payslip/<int:payslip_id>')
@admin_required
def view_payslip(payslip_id):
    """Printable payslip."""
    payslip = Payslip.query.get_or_404(payslip_id)
    return render_template('payslip_print.html', payslip=payslip)

@bp.route('/admin/payslip/<int:payslip_id>/pdf')
@admin_required
def payslip_pdf(payslip_id):
    payslip = Payslip.query.get_or_404(payslip_id)
    html = render_template('payslip_print.html', payslip=payslip, for_pdf=True)
    try:
        pdf = html_to_pdf(html, current_app.config.get('WKHTMLTOPDF_PATH'))
    except ExportError as e:
        flash(f'Could not create the PDF. Error: {e}', 'danger')
        return redirect(url_for('main.view_payslip', payslip_id=payslip_id))
    filename = secure_filename(f"payslip_{payslip.employee_code or payslip.id}_{payslip.pay_period}.pdf")
    return Response(pdf, mimetype=MIMETYPES['pdf'],
                    headers={'Content-Disposition': f'attachment; filename={filename}'})

@bp.route('/admin/payslip/<int:payslip_id>/recalculate', methods=['POST'])
@admin_required
def recalculate_payslip(payslip_id):
    Payslip.query.get_or_404(payslip_id)
    if SalaryRecalculator().recalculate(payslip_id):
        flash('Salary totals recalculated.', 'success')
    else:
        flash('Could not recalculate this payslip. Check the server log.', 'danger')
    return redirect(url_for('main.view_payslip', payslip_id=payslip_id))

@bp.route('/admin/payslips/fix-net-salary', methods=['POST'])
@admin_required
def fix_net_salaries():
    """Recalculates every payslip whose net salary is zero or empty."""
    outcome = SalaryRecalculator().fix_all_zero_or_null_net_salary()
    if not outcome['success']:
        flash('Could not look up payslips to fix. Check the server log.', 'danger')
    elif outcome['attempted'] == 0:
        flash('No payslips with a zero or empty net salary were found.', 'info')
    else:
        category = 'success' if outcome['fixed_count'] == outcome['attempted'] else 'warning'
        flash(f"Fixed {outcome['fixed_count']} of {outcome['attempted']} payslips.", category)
    return redirect(url_for('main.admin_dashboard'))

@bp.route('/admin/payslips/export/<fmt>')
@admin_required
def export_payslips(fmt):
    """Downloads the filtered payslip list as xlsx, csv or pdf."""
    if fmt not in MIMETYPES:
        flash(f'Unsupported export format "{fmt}".', 'danger')
        return redirect(url_for('main.payslips'))

    filters = _payslip_filters()
    rows = payslip_rows(search_payslips(**filters).order_by(Payslip.employee_name).all())
    label = secure_filename(filters['designation'] or filters['department'] or filters['employee'] or '')
    try:
        if fmt == 'xlsx':
            content = to_excel_bytes(rows, EXPORT_COLUMNS)
        elif fmt == 'csv':
            content = to_csv_bytes(rows, EXPORT_COLUMNS)
        else:
            content = to_pdf_bytes(rows, EXPORT_COLUMNS, title='Payslip Report',
                                   wkhtmltopdf_path=current_app.config.get('WKHTMLTOPDF_PATH'))
    except ExportError as e:
        flash(f'Export failed. Error: {e}', 'danger')
        return redirect(url_for('main.payslips', **request.args))

    current_app.logger.info(f"Exported {len(rows)} payslips as {fmt}")
    return Response(content, mimetype=MIMETYPES[fmt],
                    headers={'Content-Disposition': f'attachment; filename={export_filename(fmt, label)}'})

# --- Imports ---

@bp.route('/admin/import', methods=['GET', 'POST'])
@admin_required
def import_payslips():
    """Imports a payroll sheet of any layout straight into payslips."""
    form = UploadForm()
    if form.validate_on_submit():
        file = form.file.data
        if not allowed_file(file.filename):
            flash('File type not allowed. Please upload an .xlsx or .csv file.', 'danger')
            return redirect(request.url)

        try:
            grid = read_sheet(_save_uploaded_sheet(file))
        except SpreadsheetReadError as e:
            current_app.logger.warning(f"Unreadable upload '{file.filename}': {e}")
            flash(str(e), 'danger')
            return redirect(request.url)

        result = validate_flexible(grid)
        for message in result.info:
            flash(message, 'info')
        for message in result.warnings:
            flash(message, 'warning')
        if not result.data:
            flash('No payslip rows could be read from this file.', 'danger')
            return redirect(request.url)

        defaults = _conversion_defaults(form.pay_period.data, form.department.data)
        report = convert_rows(result.data, result.suggested_mappings, defaults)
        try:
            _add_payslips(report.records)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Saving imported payslips failed: {e}", exc_info=True)
            flash(f'An unexpected error occurred while saving payslips. Error: {e}', 'danger')
            return redirect(request.url)

        current_app.logger.info(
            f"Imported '{file.filename}': {report.success_count} payslips, {report.failure_count} failed rows, "
            f"mapping summary {summarize_mappings(result.suggested_mappings)}"
        )
        flash(f'{report.success_count} payslips created.', 'success')
        if report.failure_count:
            flash(f'{report.failure_count} rows could not be converted.', 'warning')
        return redirect(url_for('main.payslips'))

    return render_template('import.html', form=form)

@bp.route('/admin/import/strict', methods=['GET', 'POST'])
@admin_required
def strict_import():
    """Validates a sheet against the payroll template and keeps its rows for review."""
    form = StrictUploadForm()
    if form.validate_on_submit():
        file = form.file.data
        if not allowed_file(file.filename):
            flash('File type not allowed. Please upload an .xlsx or .csv file.', 'danger')
            return redirect(request.url)

        try:
            grid = read_sheet(_save_uploaded_sheet(file))
        except SpreadsheetReadError as e:
            flash(str(e), 'danger')
            return redirect(request.url)

        result = validate_strict(grid)
        if not result.is_valid:
            return render_template('strict_result.html', result=result, form=form)

        try:
            upload = PayrollUpload(upload_name=form.upload_name.data, file_name=file.filename,
                                   total_records=len(result.data), created_by='admin')
            db.session.add(upload)
            db.session.flush()
            for number, row in enumerate(result.data, start=1):
                db.session.add(PayrollData(upload_id=upload.id, row_number=number, data_json=row))
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Saving payroll upload failed: {e}", exc_info=True)
            flash(f'An unexpected error occurred while saving the upload. Error: {e}', 'danger')
            return redirect(request.url)

        for message in result.warnings:
            flash(message, 'warning')
        flash(f'{upload.total_records} rows uploaded.', 'success')
        return redirect(url_for('main.upload_detail', upload_id=upload.id))

    return render_template('strict_import.html', form=form)

@bp.route('/admin/uploads')
@admin_required
def uploads():
    items = PayrollUpload.query.order_by(PayrollUpload.upload_date.desc()).all()
    return render_template('uploads.html', uploads=items)

@bp.route('/admin/upload/<int:upload_id>')
@admin_required
def upload_detail(upload_id):
    upload = PayrollUpload.query.get_or_404(upload_id)
    rows = upload.rows.all()
    columns = list(rows[0].data_json.keys()) if rows else []
    return render_template('upload_detail.html', upload=upload, rows=rows, columns=columns)

@bp.route('/admin/upload/row/<int:row_id>/edit', methods=['GET', 'POST'])
@admin_required
def edit_payroll_row(row_id):
    row = PayrollData.query.get_or_404(row_id)
    form = PayrollRowForm()
    if request.method == 'GET':
        form.data_json.data = json.dumps(row.data_json, ensure_ascii=False, indent=2)
    if form.validate_on_submit():
        try:
            parsed = json.loads(form.data_json.data)
        except json.JSONDecodeError:
            flash('The row data is not valid JSON.', 'danger')
            return render_template('admin_form.html', form=form, title=f'Edit Row {row.row_number}')
        if not isinstance(parsed, dict):
            flash('The row data must be a JSON object.', 'danger')
            return render_template('admin_form.html', form=form, title=f'Edit Row {row.row_number}')
        row.data_json = parsed
        db.session.commit()
        flash(f'Row {row.row_number} updated.', 'success')
        return redirect(url_for('main.upload_detail', upload_id=row.upload_id))
    return render_template('admin_form.html', form=form, title=f'Edit Row {row.row_number}')

@bp.route('/admin/upload/row/<int:row_id>/delete', methods=['POST'])
@admin_required
def delete_payroll_row(row_id):
    row = PayrollData.query.get_or_404(row_id)
    upload, number = row.upload, row.row_number
    db.session.delete(row)
    upload.total_records = max((upload.total_records or 1) - 1, 0)
    db.session.commit()
    flash(f'Row {number} deleted.', 'success')
    return redirect(url_for('main.upload_detail', upload_id=upload.id))

@bp.route('/admin/upload/<int:upload_id>/delete', methods=['POST'])
@admin_required
def delete_upload(upload_id):
    upload = PayrollUpload.query.get_or_404(upload_id)
    name = upload.upload_name
    db.session.delete(upload)
    db.session.commit()
    flash(f'Upload "{name}" deleted.', 'success')
    return redirect(url_for('main.uploads'))

@bp.route('/admin/upload/<int:upload_id>/convert', methods=['POST'])
@admin_required
def convert_upload(upload_id):
    """Creates payslips from the reviewed rows of a template upload."""
    upload = PayrollUpload.query.get_or_404(upload_id)
    rows = [row.data_json for row in upload.rows]
    report = convert_strict_rows(rows, _conversion_defaults(request.form.get('pay_period')))
    try:
        _add_payslips(report.records, upload_id=upload.id)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Converting upload {upload_id} failed: {e}", exc_info=True)
        flash(f'An unexpected error occurred while creating payslips. Error: {e}', 'danger')
        return redirect(url_for('main.upload_detail', upload_id=upload_id))

    flash(f'{report.success_count} payslips created from "{upload.upload_name}".', 'success')
    if report.failure_count:
        flash(f'{report.failure_count} rows could not be converted.', 'warning')
    return redirect(url_for('main.payslips'))

# --- Companies and Designations ---

@bp.route('/admin/companies', methods=['GET', 'POST'])
@admin_required
def companies():
    form = CompanyForm()
    if form.validate_on_submit():
        try:
            company = Company(name=form.name.data.strip())
            db.session.add(company)
            db.session.commit()
            flash(f'Company "{company.name}" added.', 'success')
            return redirect(url_for('main.companies'))
        except IntegrityError:
            db.session.rollback()
            flash('A company with this name already exists.', 'danger')
    items = Company.query.order_by(Company.name).all()
    return render_template('companies.html', companies=items, form=form)

@bp.route('/admin/company/edit/<int:company_id>', methods=['GET', 'POST'])
@admin_required
def edit_company(company_id):
    company = Company.query.get_or_404(company_id)
    form = CompanyForm(obj=company)
    if form.validate_on_submit():
        try:
            company.name = form.name.data.strip()
            db.session.commit()
            flash(f'Company "{company.name}" updated.', 'success')
            return redirect(url_for('main.companies'))
        except IntegrityError:
            db.session.rollback()
            flash('A company with this name already exists.', 'danger')
    return render_template('admin_form.html', form=form, title=f'Edit Company: {company.name}')

@bp.route('/admin/company/delete/<int:company_id>', methods=['POST'])
@admin_required
def delete_company(company_id):
    company = Company.query.get_or_404(company_id)
    if company.documents.count():
        flash(f'Company "{company.name}" still has documents and cannot be deleted.', 'warning')
        return redirect(url_for('main.companies'))
    name = company.name
    db.session.delete(company)
    db.session.commit()
    flash(f'Company "{name}" deleted.', 'success')
    return redirect(url_for('main.companies'))

@bp.route('/admin/designations', methods=['GET', 'POST'])
@admin_required
def designations():
    form = DesignationForm()
    if form.validate_on_submit():
        try:
            designation = Designation(title=form.title.data.strip())
            db.session.add(designation)
            db.session.commit()
            flash(f'Designation "{designation.title}" added.', 'success')
            return redirect(url_for('main.designations'))
        except IntegrityError:
            db.session.rollback()
            flash('A designation with this title already exists.', 'danger')
    items = Designation.query.order_by(Designation.title).all()
    return render_template('designations.html', designations=items, form=form)

@bp.route('/admin/designation/edit/<int:designation_id>', methods=['GET', 'POST'])
@admin_required
def edit_designation(designation_id):
    designation = Designation.query.get_or_404(designation_id)
    form = DesignationForm(obj=designation)
    if form.validate_on_submit():
        try:
            designation.title = form.title.data.strip()
            db.session.commit()
            flash(f'Designation "{designation.title}" updated.', 'success')
            return redirect(url_for('main.designations'))
        except IntegrityError:
            db.session.rollback()
            flash('A designation with this title already exists.', 'danger')
    return render_template('admin_form.html', form=form, title=f'Edit Designation: {designation.title}')

@bp.route('/admin/designation/delete/<int:designation_id>', methods=['POST'])
@admin_required
def delete_designation(designation_id):
    designation = Designation.query.get_or_404(designation_id)
    if designation.documents.count():
        flash(f'Designation "{designation.title}" still has documents and cannot be deleted.', 'warning')
        return redirect(url_for('main.designations'))
    title = designation.title
    db.session.delete(designation)
    db.session.commit()
    flash(f'Designation "{title}" deleted.', 'success')
    return redirect(url_for('main.designations'))

# --- Document Archive ---

@bp.route('/admin/documents')
@admin_required
def documents():
    """Active documents, filterable by company, designation and access code."""
    query = Document.query.filter_by(is_active=True)
    company_id = request.args.get('company_id', type=int)
    designation_id = request.args.get('designation_id', type=int)
    access_code = request.args.get('access_code', '').strip().upper()
    if company_id:
        query = query.filter_by(company_id=company_id)
    if designation_id:
        query = query.filter_by(designation_id=designation_id)
    if access_code:
        query = query.filter_by(access_code=access_code)
    return render_template('documents.html', documents=query.order_by(Document.created_at.desc()).all(),
                           companies=Company.query.order_by(Company.name).all(),
                           designations=Designation.query.order_by(Designation.title).all())

@bp.route('/admin/document/upload', methods=['GET', 'POST'])
@admin_required
def upload_document():
    form = DocumentUploadForm()
    _document_form_choices(form)
    if request.method == 'GET':
        now = datetime.now()
        form.month.data = str(now.month)
        form.year.data = now.year
    if form.validate_on_submit():
        file = form.file.data
        if not allowed_file(file.filename, 'DOCUMENT_EXTENSIONS'):
            flash('File type not allowed for documents.', 'danger')
            return redirect(request.url)

        company = Company.query.get_or_404(form.company_id.data)
        access_code = (form.access_code.data or '').strip().upper() or \
            generate_batch_access_code(company.name, form.month.data, form.year.data)
        filename = secure_filename(file.filename)
        data = file.read()
        try:
            url = get_storage().store(data, f"documents/{company.id}/{uuid.uuid4().hex}_{filename}")
            document = Document(title=form.title.data, filename=filename, file_path=url, file_size=len(data),
                                content_type=file.mimetype, company_id=company.id,
                                designation_id=form.designation_id.data, access_code=access_code,
                                uploaded_by='admin')
            db.session.add(document)
            db.session.commit()
        except BlobStorageError as e:
            flash(f'Could not store the file. Error: {e}', 'danger')
            return redirect(request.url)
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Saving document failed: {e}", exc_info=True)
            flash(f'An unexpected error occurred while saving the document. Error: {e}', 'danger')
            return redirect(request.url)

        flash(f'Document "{document.title}" uploaded with access code {access_code}.', 'success')
        return redirect(url_for('main.documents'))
    return render_template('admin_form.html', form=form, title='Upload Document', multipart=True)

@bp.route('/admin/document/edit/<int:document_id>', methods=['GET', 'POST'])
@admin_required
def edit_document(document_id):
    document = Document.query.filter_by(id=document_id, is_active=True).first_or_404()
    form = DocumentEditForm(obj=document)
    _document_form_choices(form)
    if form.validate_on_submit():
        document.title = form.title.data
        document.company_id = form.company_id.data
        document.designation_id = form.designation_id.data
        db.session.commit()
        flash(f'Document "{document.title}" updated.', 'success')
        return redirect(url_for('main.documents'))
    return render_template('admin_form.html', form=form, title=f'Edit Document: {document.title}')

@bp.route('/admin/document/delete/<int:document_id>', methods=['POST'])
@admin_required
def delete_document(document_id):
    """Hides a document from the archive and the portal; the file is kept."""
    document = Document.query.get_or_404(document_id)
    document.is_active = False
    db.session.commit()
    flash(f'Document "{document.title}" deleted.', 'success')
    return redirect(url_for('main.documents'))

# --- Client Document Portal ---

@bp.route('/portal', methods=['GET', 'POST'])
def portal():
    """Access-code login for clients."""
    form = AccessCodeForm()
    if form.validate_on_submit():
        code = form.access_code.data.strip().upper()
        if Document.query.filter_by(access_code=code, is_active=True).count():
            session['portal_access_code'] = code
            return redirect(url_for('main.portal_documents'))
        flash('Invalid access code.', 'danger')
    return render_template('portal_login.html', form=form)

@bp.route('/portal/documents')
def portal_documents():
    code = session.get('portal_access_code')
    if not code:
        flash('Please enter your access code first.', 'warning')
        return redirect(url_for('main.portal'))
    items = Document.query.filter_by(access_code=code, is_active=True).order_by(Document.title).all()
    return render_template('portal_documents.html', documents=items, access_code=code)

@bp.route('/portal/document/<int:document_id>')
def open_document(document_id):
    """Records the access and sends the client to the stored file."""
    code = session.get('portal_access_code')
    if not code:
        return redirect(url_for('main.portal'))
    document = Document.query.filter_by(id=document_id, access_code=code, is_active=True).first_or_404()
    try:
        db.session.add(DocumentAccessLog(document_id=document.id, access_code=code,
                                         ip_address=request.remote_addr,
                                         user_agent=(request.user_agent.string or '')[:256]))
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Could not log access to document {document_id}: {e}", exc_info=True)
    return redirect(document.file_path)

@bp.route('/portal/logout')
def portal_logout():
    session.pop('portal_access_code', None)
    return redirect(url_for('main.portal'))
