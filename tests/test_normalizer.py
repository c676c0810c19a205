# tests/test_normalizer.py

import pytest

from payportal.payroll.fields import FIELD_DICTIONARY, CANONICAL_FIELDS, HIGH, MEDIUM, LOW
from payportal.payroll.normalizer import (ColumnMapping, match_header, normalize_header, normalize_text,
                                          fuzzy_ratio)


# --- Field dictionary ---

def test_every_field_has_a_category_and_variants():
    assert len(CANONICAL_FIELDS) == len(FIELD_DICTIONARY)
    for name, entry in FIELD_DICTIONARY.items():
        assert entry['category']
        assert len(entry['variants']) >= 1, name


def test_field_dictionary_is_read_only():
    with pytest.raises(TypeError):
        FIELD_DICTIONARY['new_field'] = {'category': 'other', 'variants': ('x',)}
    with pytest.raises(TypeError):
        FIELD_DICTIONARY['hra']['variants'] = ()


# --- Text normalization ---

def test_normalize_text_collapses_separators():
    assert normalize_text('  Employee__Name ') == 'employee name'
    assert normalize_text('Emp-Code') == 'emp code'
    assert normalize_text(None) == ''


# --- Header matching tiers ---

@pytest.mark.parametrize('header', ['HRA', 'house rent allowance', 'House Rent', 'house_rent'])
def test_house_rent_spellings_resolve_to_hra(header):
    assert normalize_header(header) == 'hra'


def test_normalization_is_deterministic():
    assert normalize_header('Net Pay') == normalize_header('Net Pay') == 'net_salary'
    assert normalize_header('Remarks') is None
    assert normalize_header('Remarks') is None


@pytest.mark.parametrize('header, field', [
    ('Employee Name', 'employee_name'),
    ('EMP_NAME', 'employee_name'),
    ('Employee Code', 'employee_code'),
    ('Basic_Earned', 'earned_basic'),
    ('HRA_Earned', 'earned_hra'),
    ('FINAL NET PAY', 'net_salary'),
    ('ESIC', 'insurance_deduction'),
    ('PT', 'tax_deduction'),
    ('W Day', 'working_days'),
    ('IFSC', 'ifsc_code'),
])
def test_exact_variants_match_with_high_confidence(header, field):
    match = match_header(header)
    assert match.field == field
    assert match.confidence == HIGH


def test_substring_match_has_medium_confidence():
    match = match_header('Basic Salary (Rs)')
    assert (match.field, match.category, match.confidence) == ('basic_salary', 'earnings', MEDIUM)

    match = match_header('Take Home Pay')
    assert (match.field, match.confidence) == ('net_salary', MEDIUM)


def test_reordered_words_match_fuzzily():
    match = match_header('Fund Provident')
    assert (match.field, match.category, match.confidence) == ('pf_deduction', 'deductions', LOW)


def test_short_variants_do_not_match_inside_longer_words():
    # 'pt' (professional tax) must not be found inside 'description'
    assert match_header('Description') is None
    assert match_header('') is None
    assert match_header('   ') is None


def test_fuzzy_ratio_counts_against_the_longer_side():
    assert fuzzy_ratio('fund provident', 'provident fund') == 1.0
    assert fuzzy_ratio('provident', 'provident fund') == 0.5
    assert fuzzy_ratio('the', 'provident fund') == 0.0


# --- ColumnMapping ---

def test_column_mapping_round_trips_through_dict():
    mapping = ColumnMapping('Net Pay', 'net_salary', 'net_pay', HIGH)
    assert mapping.is_mapped
    assert ColumnMapping.from_dict(mapping.to_dict()) == mapping
    assert not ColumnMapping('Remarks', 'Remarks').is_mapped
