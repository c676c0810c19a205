# tests/test_validator.py

from payportal.payroll.fields import STRICT_COLUMNS, HIGH, LOW
from payportal.payroll.structure import MergedRange
from payportal.payroll.validator import map_columns, summarize_mappings, validate_flexible, validate_strict


def _template_row(**overrides):
    row = {column: '' for column in STRICT_COLUMNS}
    row.update({'S.No': 1, 'Employee Code': 'E001', 'Employee Name': 'Asha Patel', 'Designation': 'Helper',
                'Basic': 20000, 'HRA': 8000, 'W Day': 26, 'Present': 26,
                'Basic_Earned': 20000, 'HRA_Earned': 8000, 'PF': 2400, 'FINAL NET PAY': 25600})
    row.update(overrides)
    return row


# --- Flexible path ---

def test_flexible_accepts_any_layout(make_grid):
    rows = [
        ['Emp Name', 'Staff Code', 'Basic Pay', 'House Rent', 'Remarks', 'Take Home'],
        ['Asha', 'E001', 20000, 8000, 'joined late', 26000],
    ]
    result = validate_flexible(make_grid(rows))

    assert result.is_valid
    assert result.detected_columns == rows[0]
    assert [m.suggested_field for m in result.suggested_mappings] == [
        'employee_name', 'employee_code', 'basic_salary', 'hra', 'Remarks', 'net_salary']
    assert result.suggested_mappings[4].category == 'other'
    assert result.data[0]['Remarks'] == 'joined late'
    assert result.warnings == []
    assert 'Detected 6 columns in your spreadsheet' in result.info
    assert '1 columns kept as-is without a matching payslip field' in result.info
    assert 'Found 1 data rows ready for payslip generation' in result.info


def test_flexible_never_fails_on_an_empty_sheet(make_grid):
    result = validate_flexible(make_grid([]))
    assert result.is_valid
    assert result.warnings == ['Empty or invalid spreadsheet detected']
    assert result.data == []


def test_flexible_reports_missing_header_row(make_grid):
    result = validate_flexible(make_grid([['just a note'], [1, 2]]))
    assert result.is_valid
    assert result.warnings == ['No column headers found in the first 5 rows']


def test_flexible_suggests_identity_columns(make_grid):
    result = validate_flexible(make_grid([['Basic', 'HRA', 'Net Pay'], [100, 40, 140]]))
    assert result.is_valid
    assert result.warnings == [
        'Consider adding "Employee Name" for better payslip organization',
        'Consider adding "Employee Code" for better payslip organization',
    ]


def test_flexible_maps_sub_headers(make_grid):
    rows = [
        ['Name', 'Code', 'Earnings', None, 'Deductions', None],
        [None, None, 'Basic', 'HRA', 'PF', 'ESIC'],
        ['Asha', 'E001', 25000, 10000, 3000, 200],
    ]
    merges = [MergedRange(0, 0, 1, 0), MergedRange(0, 1, 1, 1), MergedRange(0, 2, 0, 3), MergedRange(0, 4, 0, 5)]
    result = validate_flexible(make_grid(rows, merges))

    fields = {m.detected_column: (m.suggested_field, m.confidence) for m in result.suggested_mappings}
    assert fields['Earnings_Basic'] == ('basic_salary', HIGH)
    assert fields['Deductions_ESIC'] == ('insurance_deduction', HIGH)
    assert any(message.startswith('Two-row header detected') for message in result.info)


def test_placeholder_columns_stay_unmapped():
    mappings = map_columns(['Name', 'Column_2'])
    assert mappings[0].suggested_field == 'employee_name'
    assert (mappings[1].suggested_field, mappings[1].category, mappings[1].confidence) == \
        ('Column_2', 'other', LOW)
    assert summarize_mappings(mappings)['employee_info'] == 1


# --- Strict path ---

def test_strict_accepts_the_template(make_grid):
    grid = make_grid([list(STRICT_COLUMNS), list(_template_row().values())])
    result = validate_strict(grid)

    assert result.is_valid
    assert result.errors == []
    assert result.missing_columns == []
    assert result.data[0]['Employee Name'] == 'Asha Patel'


def test_strict_rejects_a_missing_column_but_keeps_the_rows(make_grid):
    columns = [c for c in STRICT_COLUMNS if c != 'Basic']
    row = _template_row()
    grid = make_grid([columns, [row[c] for c in columns]])
    result = validate_strict(grid)

    assert not result.is_valid
    assert result.missing_columns == ['Basic']
    assert 'Missing required columns: Basic' in result.errors
    assert len(result.data) == 1
    assert result.data[0]['Employee Code'] == 'E001'


def test_strict_requires_name_and_code_on_every_row(make_grid):
    grid = make_grid([
        list(STRICT_COLUMNS),
        list(_template_row().values()),
        list(_template_row(**{'Employee Code': ''}).values()),
    ])
    result = validate_strict(grid)

    assert not result.is_valid
    assert result.errors == ['Row 3: Employee Code is required']
    assert len(result.data) == 2


def test_strict_warns_about_extra_columns(make_grid):
    row = _template_row()
    grid = make_grid([list(STRICT_COLUMNS) + ['Remarks'], list(row.values()) + ['ok']])
    result = validate_strict(grid)

    assert result.is_valid
    assert result.extra_columns == ['Remarks']
    assert result.warnings == ['Extra columns detected: Remarks']


def test_strict_rejects_empty_input(make_grid):
    assert validate_strict(make_grid([])).errors == ['Empty or invalid spreadsheet']
    assert validate_strict(make_grid([['note']])).errors == ['No headers found in spreadsheet']

    result = validate_strict(make_grid([list(STRICT_COLUMNS)]))
    assert 'No data rows found in spreadsheet' in result.errors
