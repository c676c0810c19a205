# ==============================================================================
# payportal/models.py
# ------------------------------------------------------------------------------
# Defines the database schema using SQLAlchemy ORM models.
# ==============================================================================

from datetime import datetime
from payportal import db


class TimestampMixin:
    """created_at / updated_at columns and a plain-dict view of the row."""
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}


class Company(TimestampMixin, db.Model):
    __tablename__ = 'companies'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), unique=True, nullable=False)

    documents = db.relationship('Document', back_populates='company', lazy='dynamic')

    def __repr__(self):
        return f'<Company {self.id}: {self.name}>'


class Designation(TimestampMixin, db.Model):
    __tablename__ = 'designations'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(128), unique=True, nullable=False)

    documents = db.relationship('Document', back_populates='designation', lazy='dynamic')

    def __repr__(self):
        return f'<Designation {self.id}: {self.title}>'


class Payslip(TimestampMixin, db.Model):
    """
    One employee's payslip for one pay period. The well-known salary fields are
    columns; anything else from an imported sheet lives in `extra_fields`, and
    `original_data` / `column_mappings` keep the import audit trail.
    """
    __tablename__ = 'payslips'
    id = db.Column(db.Integer, primary_key=True)

    # --- Identity ---
    serial_number = db.Column(db.Integer)
    employee_name = db.Column(db.String(128), index=True, nullable=False)
    employee_id = db.Column(db.String(64), index=True, nullable=False, default='')
    employee_code = db.Column(db.String(64), index=True)
    designation = db.Column(db.String(128), nullable=False, default='')
    department = db.Column(db.String(128), nullable=False, default='')
    pay_period = db.Column(db.String(64), index=True, nullable=False, default='')

    # --- Salary break-up ---
    basic_salary = db.Column(db.Float, nullable=False, default=0)
    hra = db.Column(db.Float, nullable=False, default=0)
    salary_fixed_part = db.Column(db.Float, default=0)
    salary_variable_part = db.Column(db.Float, default=0)

    # --- Attendance ---
    working_days = db.Column(db.Integer, default=0)
    present_days = db.Column(db.Integer, default=0)
    os_hours = db.Column(db.Float, default=0)

    # --- Earned wages and allowances ---
    earned_basic = db.Column(db.Float, default=0)
    earned_hra = db.Column(db.Float, default=0)
    earned_os = db.Column(db.Float, default=0)
    other_earning = db.Column(db.Float, default=0)
    performance_allowance = db.Column(db.Float, default=0)
    skill_allowance = db.Column(db.Float, default=0)
    attendance_incentive = db.Column(db.Float, default=0)
    transport_allowance = db.Column(db.Float, nullable=False, default=0)
    medical_allowance = db.Column(db.Float, nullable=False, default=0)
    other_allowances = db.Column(db.Float, nullable=False, default=0)

    # --- Deductions ---
    pf_deduction = db.Column(db.Float, nullable=False, default=0)
    tax_deduction = db.Column(db.Float, nullable=False, default=0)
    insurance_deduction = db.Column(db.Float, nullable=False, default=0)
    canteen_deduction = db.Column(db.Float, default=0)
    advance_deduction = db.Column(db.Float, default=0)
    other_deductions = db.Column(db.Float, nullable=False, default=0)
    service_charge = db.Column(db.Float, default=0)

    # --- Totals ---
    total_earning_gross = db.Column(db.Float, default=0)
    total_deductions = db.Column(db.Float, default=0)
    net_salary = db.Column(db.Float, index=True)

    # --- Bank details ---
    bank_name = db.Column(db.String(128))
    bank_account_number = db.Column(db.String(64))
    ifsc_code = db.Column(db.String(32))

    company_name = db.Column(db.String(128), nullable=False, default='')
    company_address = db.Column(db.String(256), nullable=False, default='')

    # --- Import audit ---
    extra_fields = db.Column(db.JSON)
    original_data = db.Column(db.JSON)
    column_mappings = db.Column(db.JSON)
    upload_id = db.Column(db.Integer, db.ForeignKey('payroll_uploads.id', ondelete='SET NULL'), nullable=True)

    def __repr__(self):
        return f'<Payslip {self.id}: {self.employee_name} ({self.pay_period})>'


class PayrollUpload(TimestampMixin, db.Model):
    """A strict-template sheet whose rows are kept for review before conversion."""
    __tablename__ = 'payroll_uploads'
    id = db.Column(db.Integer, primary_key=True)
    upload_name = db.Column(db.String(128), nullable=False)
    file_name = db.Column(db.String(256), nullable=False)
    total_records = db.Column(db.Integer, default=0)
    upload_date = db.Column(db.DateTime, index=True, default=datetime.utcnow)
    created_by = db.Column(db.String(64))

    rows = db.relationship('PayrollData', backref='upload', lazy='dynamic',
                           cascade='all, delete-orphan', order_by='PayrollData.row_number')

    def __repr__(self):
        return f'<PayrollUpload {self.id}: {self.file_name}>'


class PayrollData(TimestampMixin, db.Model):
    __tablename__ = 'payroll_data'
    id = db.Column(db.Integer, primary_key=True)
    upload_id = db.Column(db.Integer, db.ForeignKey('payroll_uploads.id'), nullable=False)
    row_number = db.Column(db.Integer, nullable=False)
    data_json = db.Column(db.JSON, nullable=False)

    def __repr__(self):
        return f'<PayrollData {self.upload_id}#{self.row_number}>'


class Document(TimestampMixin, db.Model):
    """An archived compliance document. Deleting only clears `is_active`."""
    __tablename__ = 'documents'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(256), nullable=False)
    filename = db.Column(db.String(256), nullable=False)
    file_path = db.Column(db.String(512), nullable=False)
    file_size = db.Column(db.Integer)
    content_type = db.Column(db.String(128))
    company_id = db.Column(db.Integer, db.ForeignKey('companies.id'), nullable=False)
    designation_id = db.Column(db.Integer, db.ForeignKey('designations.id'), nullable=False)
    access_code = db.Column(db.String(32), index=True, nullable=False)
    uploaded_by = db.Column(db.String(64))
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    company = db.relationship('Company', back_populates='documents')
    designation = db.relationship('Designation', back_populates='documents')
    access_logs = db.relationship('DocumentAccessLog', backref='document', lazy='dynamic',
                                  cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Document {self.id}: {self.title}>'


class DocumentAccessLog(TimestampMixin, db.Model):
    __tablename__ = 'document_access_logs'
    id = db.Column(db.Integer, primary_key=True)
    document_id = db.Column(db.Integer, db.ForeignKey('documents.id'), nullable=False)
    access_code = db.Column(db.String(32), nullable=False)
    access_time = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    ip_address = db.Column(db.String(64))
    user_agent = db.Column(db.String(256))

    def __repr__(self):
        return f'<DocumentAccessLog {self.document_id} @ {self.access_time}>'


# Table name -> model, for the generic table store
TABLE_MODELS = {
    model.__tablename__: model
    for model in (Company, Designation, Payslip, PayrollUpload, PayrollData, Document, DocumentAccessLog)
}
