# ==============================================================================
# payportal/payroll/fields.py
# ------------------------------------------------------------------------------
# Field dictionary for payslip ingestion. This module is the single source of
# truth for canonical field names, the header spellings accepted for each of
# them, the strict template columns and the matching thresholds.
# ==============================================================================

from types import MappingProxyType

# --- Categories ---
EMPLOYEE_INFO = 'employee_info'
EARNINGS = 'earnings'
DEDUCTIONS = 'deductions'
NET_PAY = 'net_pay'
BANK_DETAILS = 'bank_details'
ATTENDANCE = 'attendance'
OTHER = 'other'

CATEGORIES = (EMPLOYEE_INFO, EARNINGS, DEDUCTIONS, NET_PAY, BANK_DETAILS, ATTENDANCE, OTHER)

# --- Confidence levels ---
HIGH = 'high'
MEDIUM = 'medium'
LOW = 'low'

# --- Matching policy ---
STOPWORDS = frozenset({'the', 'and', 'of', 'to', 'in', 'for', 'with', 'by'})
FUZZY_MATCH_THRESHOLD = 0.6
# Substring matches shorter than this ("pt", "os", "id") only count when exact.
MIN_SUBSTRING_LENGTH = 3

# --- Sheet scanning bounds ---
HEADER_SCAN_ROWS = 5
MIN_HEADER_CELLS = 2
MAX_COLUMNS = 100
MAX_DATA_ROWS = 1000
PLACEHOLDER_PREFIX = 'Column_'

# Declaration order is the tie-break order for header matching.
_FIELDS = (
    # Employee information
    ('serial_number', EMPLOYEE_INFO, ('s.no', 's no', 'sno', 'sr no', 'sr.no', 'sl no', 'serial no', 'serial number', 'serial')),
    ('employee_name', EMPLOYEE_INFO, ('employee name', 'emp name', 'name', 'full name', 'fullname', 'staff name')),
    ('employee_code', EMPLOYEE_INFO, ('employee code', 'emp code', 'empcode', 'code', 'staff code', 'emp no', 'employee no')),
    ('employee_id', EMPLOYEE_INFO, ('employee id', 'emp id', 'staff id', 'id')),
    ('designation', EMPLOYEE_INFO, ('designation', 'position', 'job title', 'title', 'role', 'post')),
    ('department', EMPLOYEE_INFO, ('department', 'dept', 'division', 'section')),
    ('pay_period', EMPLOYEE_INFO, ('pay period', 'salary period', 'payroll period', 'period', 'month')),

    # Salary break-up and earned wages
    ('basic_salary', EARNINGS, ('basic', 'basic salary', 'basic pay', 'base salary', 'base pay', 'basic wage')),
    ('hra', EARNINGS, ('hra', 'house rent allowance', 'house rent', 'rent allowance', 'house allowance')),
    ('salary_fixed_part', EARNINGS, ('fixed part', 'salary fixed part', 'fixed salary', 'fixed pay', 'fixed component')),
    ('salary_variable_part', EARNINGS, ('variable part', 'salary variable part', 'variable salary', 'variable pay', 'variable component')),
    ('earned_basic', EARNINGS, ('earned basic', 'basic earned', 'earned wages basic')),
    ('earned_hra', EARNINGS, ('earned hra', 'hra earned', 'earned wages hra')),
    ('earned_os', EARNINGS, ('os', 'ot', 'earned os', 'overtime', 'overtime pay', 'earned overtime', 'earned wages os')),
    ('other_earning', EARNINGS, ('other earning', 'other earnings', 'misc earning', 'misc earnings', 'additional earnings')),
    ('performance_allowance', EARNINGS, ('performance allowance', 'performance', 'performance bonus', 'perf allowance', 'bonus')),
    ('skill_allowance', EARNINGS, ('skill allowance', 'skill', 'special allowance', 'technical allowance')),
    ('attendance_incentive', EARNINGS, ('att. incentive / att. bonus', 'attendance incentive', 'att. incentive', 'att incentive',
                                        'attendance bonus', 'att. bonus', 'att bonus')),
    ('transport_allowance', EARNINGS, ('transport allowance', 'transport', 'conveyance', 'conveyance allowance', 'travel allowance', 'ta')),
    ('medical_allowance', EARNINGS, ('medical allowance', 'medical', 'health allowance', 'medical benefit')),
    ('other_allowances', EARNINGS, ('other allowances', 'other allowance', 'misc allowances', 'miscellaneous allowances', 'additional allowances')),
    ('total_earning_gross', EARNINGS, ('total earning (gross)', 'total earning', 'total earnings', 'gross earning', 'gross salary',
                                       'total gross', 'gross pay', 'gross')),

    # Deductions
    ('pf_deduction', DEDUCTIONS, ('pf', 'epf', 'provident fund', 'pf deduction', 'pf contribution')),
    ('tax_deduction', DEDUCTIONS, ('pt', 'professional tax', 'prof tax', 'tax', 'income tax', 'tds', 'tax deduction')),
    ('insurance_deduction', DEDUCTIONS, ('esic', 'esi', 'employee state insurance', 'insurance', 'health insurance', 'insurance deduction')),
    ('canteen_deduction', DEDUCTIONS, ('lunch / dinner', 'lunch/dinner', 'canteen', 'lunch', 'dinner')),
    ('advance_deduction', DEDUCTIONS, ('advance', 'salary advance', 'cash advance', 'bank advance')),
    ('other_deductions', DEDUCTIONS, ('other deductions', 'other deduction', 'misc deduction', 'misc deductions', 'miscellaneous deductions')),
    ('service_charge', DEDUCTIONS, ('service charge', 'service charges', 'bank charge', 'charges')),
    ('total_deductions', DEDUCTIONS, ('total deductions', 'total deduction', 'total ded')),

    # Net pay
    ('net_salary', NET_PAY, ('final net pay', 'net payment', 'net pay', 'net salary', 'final net', 'take home', 'in hand',
                             'net amount', 'net')),

    # Bank details
    ('bank_name', BANK_DETAILS, ('bank name', 'bank', 'bank details')),
    ('bank_account_number', BANK_DETAILS, ('bank account number', 'account number', 'bank account', 'account no', 'acc no',
                                           'a/c no', 'bank a/c', 'account')),
    ('ifsc_code', BANK_DETAILS, ('ifsc code', 'ifsc', 'branch code')),

    # Attendance
    ('working_days', ATTENDANCE, ('w day', 'w days', 'working days', 'work days', 'total days', 'days')),
    ('present_days', ATTENDANCE, ('present', 'present days', 'days present', 'attendance')),
    ('os_hours', ATTENDANCE, ('os hours', 'overtime hours', 'ot hours', 'extra hours')),

    # Company details printed on the payslip
    ('company_name', EMPLOYEE_INFO, ('company name', 'company', 'organization', 'employer')),
    ('company_address', EMPLOYEE_INFO, ('company address', 'address', 'office address')),
)

FIELD_DICTIONARY = MappingProxyType({
    name: MappingProxyType({'category': category, 'variants': variants})
    for name, category, variants in _FIELDS
})

CANONICAL_FIELDS = tuple(name for name, _, _ in _FIELDS)

def category_of(field_name):
    """Returns the category of a canonical field, or 'other' for anything else."""
    entry = FIELD_DICTIONARY.get(field_name)
    return entry['category'] if entry else OTHER

# --- Field value types ---
INTEGER_FIELDS = frozenset({'serial_number', 'working_days', 'present_days'})
TEXT_FIELDS = frozenset({
    'employee_name', 'employee_code', 'employee_id', 'designation', 'department', 'pay_period',
    'bank_name', 'bank_account_number', 'ifsc_code', 'company_name', 'company_address',
})
NUMERIC_FIELDS = frozenset(CANONICAL_FIELDS) - INTEGER_FIELDS - TEXT_FIELDS

# Column names tried, in order, when several source columns could fill the
# same field. The first non-empty value wins.
FIELD_SOURCE_COLUMNS = MappingProxyType({
    'net_salary': ('FINAL NET PAY', 'Net Payment', 'Net Pay', 'Net Salary', 'Take Home'),
    'total_earning_gross': ('Total Earning (Gross)', 'Total Earning', 'Gross Salary', 'Gross'),
    'total_deductions': ('Total Deductions', 'Total Deduction'),
    'earned_basic': ('Basic_Earned', 'Basic Earned'),
    'earned_hra': ('HRA_Earned', 'HRA Earned'),
    'tax_deduction': ('PT', 'Professional Tax', 'Tax', 'Income Tax'),
    'insurance_deduction': ('ESIC', 'ESI', 'Insurance'),
    'employee_code': ('Employee Code', 'Emp Code', 'Code'),
    'employee_name': ('Employee Name', 'Emp Name', 'Name', 'Full Name'),
    'serial_number': ('S.No', 'Serial', 'SNo', 'Sr.No'),
})

# Identity columns the flexible path nudges for when they are missing.
EXPECTED_IDENTITY_FIELDS = (
    ('Employee Name', 'employee_name'),
    ('Employee Code', 'employee_code'),
)

# --- Strict payroll template ---
STRICT_COLUMNS = (
    # General information
    'S.No', 'Employee Code', 'Employee Name', 'Designation',
    # Salary break-up: fixed and variable part
    'Basic', 'HRA', 'OS Rate', 'Att. Incentive',
    # Attendance
    'W Day', 'Present', 'OS Hours',
    # Earned wages
    'Basic_Earned', 'HRA_Earned', 'OS', 'OTHER EARNING', 'PERFORMANCE ALLOWANCE', 'SKILL ALLOWANCE',
    'Att. Incentive / Att. Bonus', 'Total Earning (Gross)',
    # Deductions: statutory, canteen, cash/bank advances, other
    'PF', 'ESIC', 'PT', 'Lunch / Dinner', 'BANK', 'Maintenance', 'LIGHT BILL',
    'Other Deductions', 'GPA', 'Police Verification', 'Hostel', 'Total Deductions',
    # Net payment
    'Net Payment', 'TICKET', 'FINAL NET PAY', 'RETENTION ALLO',
    # Bank details and service charge
    'Bank Name', 'Bank Account Number', 'IFSC Code', 'SERVICE CHARGE',
)

STRICT_REQUIRED_ROW_FIELDS = ('Employee Name', 'Employee Code')

# field -> template columns tried in order
STRICT_FIELD_COLUMNS = MappingProxyType({
    'serial_number': ('S.No',),
    'employee_code': ('Employee Code',),
    'employee_name': ('Employee Name',),
    'designation': ('Designation',),
    'basic_salary': ('Basic',),
    'hra': ('HRA',),
    'working_days': ('W Day',),
    'present_days': ('Present',),
    'os_hours': ('OS Hours',),
    'earned_basic': ('Basic_Earned',),
    'earned_hra': ('HRA_Earned',),
    'earned_os': ('OS',),
    'other_earning': ('OTHER EARNING',),
    'performance_allowance': ('PERFORMANCE ALLOWANCE',),
    'skill_allowance': ('SKILL ALLOWANCE',),
    'attendance_incentive': ('Att. Incentive / Att. Bonus',),
    'total_earning_gross': ('Total Earning (Gross)',),
    'pf_deduction': ('PF',),
    'insurance_deduction': ('ESIC',),
    'tax_deduction': ('PT',),
    'total_deductions': ('Total Deductions',),
    'net_salary': ('FINAL NET PAY', 'Net Payment'),
    'bank_name': ('Bank Name',),
    'bank_account_number': ('Bank Account Number',),
    'ifsc_code': ('IFSC Code',),
    'service_charge': ('SERVICE CHARGE',),
})

# Itemized deductions collapsed into other_deductions on the strict path.
STRICT_OTHER_DEDUCTION_COLUMNS = (
    'Other Deductions', 'GPA', 'Police Verification', 'Hostel',
    'Lunch / Dinner', 'BANK', 'Maintenance', 'LIGHT BILL',
)
