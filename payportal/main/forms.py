# ==============================================================================
# payportal/main/forms.py
# ------------------------------------------------------------------------------
# Defines web forms using Flask-WTF for user input and validation.
# ==============================================================================

from datetime import date

from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired
from wtforms import (StringField, FloatField, IntegerField, SubmitField, SelectField, PasswordField,
                     TextAreaField)
from wtforms.validators import DataRequired, NumberRange, InputRequired, Optional, Length

MONTHS = [(str(i), date(2000, i, 1).strftime('%B')) for i in range(1, 13)]


class AdminLoginForm(FlaskForm):
    """Form for admin login."""
    password = PasswordField('Password', validators=[InputRequired(message="Password is required.")])
    submit = SubmitField('Log in')


class PayslipForm(FlaskForm):
    """Form for creating or editing a payslip by hand."""
    employee_name = StringField('Employee Name', validators=[DataRequired(message="This field is required.")])
    employee_code = StringField('Employee Code', validators=[Optional(), Length(max=64)])
    employee_id = StringField('Employee ID', validators=[Optional(), Length(max=64)])
    designation = StringField('Designation', validators=[Optional(), Length(max=128)])
    department = StringField('Department', validators=[Optional(), Length(max=128)])
    pay_period = StringField('Pay Period', validators=[DataRequired(message="This field is required.")])

    # Work details, used to suggest the salary break-up
    days_worked = FloatField('Days Worked', validators=[Optional(), NumberRange(min=0, max=31)])
    hours_per_day = FloatField('Hours per Day', validators=[Optional(), NumberRange(min=0, max=24)])
    hourly_rate = FloatField('Hourly Rate', validators=[Optional(), NumberRange(min=0)])

    working_days = IntegerField('Working Days', validators=[Optional(), NumberRange(min=0, max=31)])
    present_days = IntegerField('Present Days', validators=[Optional(), NumberRange(min=0, max=31)])

    basic_salary = FloatField('Basic Salary', validators=[Optional(), NumberRange(min=0)])
    hra = FloatField('HRA', validators=[Optional(), NumberRange(min=0)])
    transport_allowance = FloatField('Transport Allowance', validators=[Optional(), NumberRange(min=0)])
    medical_allowance = FloatField('Medical Allowance', validators=[Optional(), NumberRange(min=0)])
    other_allowances = FloatField('Other Allowances', validators=[Optional(), NumberRange(min=0)])

    pf_deduction = FloatField('Provident Fund', validators=[Optional(), NumberRange(min=0)])
    tax_deduction = FloatField('Tax (TDS)', validators=[Optional(), NumberRange(min=0)])
    insurance_deduction = FloatField('Insurance (ESIC)', validators=[Optional(), NumberRange(min=0)])
    other_deductions = FloatField('Other Deductions', validators=[Optional(), NumberRange(min=0)])

    net_salary = FloatField('Net Salary (leave empty to calculate)', validators=[Optional()])

    bank_name = StringField('Bank Name', validators=[Optional(), Length(max=128)])
    bank_account_number = StringField('Account Number', validators=[Optional(), Length(max=64)])
    ifsc_code = StringField('IFSC Code', validators=[Optional(), Length(max=32)])

    submit = SubmitField('Save Payslip')

    AMOUNT_FIELDS = ('basic_salary', 'hra', 'transport_allowance', 'medical_allowance', 'other_allowances',
                     'pf_deduction', 'tax_deduction', 'insurance_deduction', 'other_deductions')
    TEXT_FIELDS = ('employee_name', 'employee_code', 'employee_id', 'designation', 'department',
                   'pay_period', 'bank_name', 'bank_account_number', 'ifsc_code')


class UploadForm(FlaskForm):
    """Any-layout payroll sheet."""
    file = FileField('Payroll Sheet (.xlsx or .csv)', validators=[FileRequired(message="Please choose a file.")])
    pay_period = StringField('Pay Period (used when the sheet has none)', validators=[Optional()])
    department = StringField('Default Department', validators=[Optional()])
    submit = SubmitField('Import Payslips')


class StrictUploadForm(FlaskForm):
    """Sheet following the fixed payroll template."""
    upload_name = StringField('Upload Name', validators=[DataRequired(message="This field is required."),
                                                         Length(max=128)])
    file = FileField('Payroll Template (.xlsx or .csv)', validators=[FileRequired(message="Please choose a file.")])
    submit = SubmitField('Validate and Upload')


class PayrollRowForm(FlaskForm):
    """Raw JSON of one imported payroll row."""
    data_json = TextAreaField('Row Data (JSON)', validators=[DataRequired()], render_kw={'rows': 20})
    submit = SubmitField('Save Changes')


class CompanyForm(FlaskForm):
    name = StringField('Company Name', validators=[DataRequired(message="This field is required."),
                                                   Length(max=128)])
    submit = SubmitField('Save Company')


class DesignationForm(FlaskForm):
    title = StringField('Designation Title', validators=[DataRequired(message="This field is required."),
                                                         Length(max=128)])
    submit = SubmitField('Save Designation')


class DocumentUploadForm(FlaskForm):
    """Compliance document for the archive. Choices are filled in by the route."""
    title = StringField('Title', validators=[DataRequired(message="This field is required."), Length(max=256)])
    company_id = SelectField('Company', coerce=int, validators=[InputRequired()])
    designation_id = SelectField('Designation', coerce=int, validators=[InputRequired()])
    month = SelectField('Month', choices=MONTHS, validators=[InputRequired()])
    year = IntegerField('Year', validators=[InputRequired(), NumberRange(min=2000, max=2100)])
    access_code = StringField('Access Code (leave empty to generate)', validators=[Optional(), Length(max=32)])
    file = FileField('Document', validators=[FileRequired(message="Please choose a file.")])
    submit = SubmitField('Upload Document')


class DocumentEditForm(FlaskForm):
    title = StringField('Title', validators=[DataRequired(message="This field is required."), Length(max=256)])
    company_id = SelectField('Company', coerce=int, validators=[InputRequired()])
    designation_id = SelectField('Designation', coerce=int, validators=[InputRequired()])
    submit = SubmitField('Save Changes')


class AccessCodeForm(FlaskForm):
    """Form for a client to open the documents shared under an access code."""
    access_code = StringField('Access Code', validators=[DataRequired(message="Access code is required."),
                                                         Length(max=32)])
    submit = SubmitField('View Documents')
