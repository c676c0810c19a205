# ==============================================================================
# payportal/payroll/validator.py
# ------------------------------------------------------------------------------
# Validates uploaded payroll sheets. The flexible path accepts any layout and
# only ever warns; the strict path checks the fixed payroll template.
# ==============================================================================

import logging

from .fields import (EXPECTED_IDENTITY_FIELDS, STRICT_COLUMNS, STRICT_REQUIRED_ROW_FIELDS,
                     HEADER_SCAN_ROWS, MAX_COLUMNS, CATEGORIES, OTHER, LOW)
from .normalizer import ColumnMapping, match_header, normalize_text, CONFIDENCE_RANK
from .structure import (RawHeader, analyze_structure, find_header_row, header_text,
                        iter_data_rows, is_blank, used_width)

logger = logging.getLogger(__name__)


class FlexibleValidationResult:
    """Best-effort outcome of the flexible path. Never invalid."""

    def __init__(self):
        self.is_valid = True
        self.data = []
        self.detected_columns = []
        self.suggested_mappings = []
        self.warnings = []
        self.info = []
        self.headers = []


class StrictValidationResult:
    def __init__(self):
        self.is_valid = False
        self.errors = []
        self.warnings = []
        self.missing_columns = []
        self.extra_columns = []
        self.data = []


# --- Column mapping ---

def map_column(header):
    """
    Builds the ColumnMapping for one RawHeader. For two-row headers the combined
    text, the sub header and the main header are all tried; the most confident
    match wins, earlier candidates breaking ties.
    """
    if header.is_placeholder:
        return ColumnMapping(header.key, header.key, OTHER, LOW)

    candidates = []
    for text in (header.key, header.sub, header.main):
        if text and text not in candidates:
            candidates.append(text)

    best = None
    for text in candidates:
        match = match_header(text)
        if match and (best is None or CONFIDENCE_RANK[match.confidence] > CONFIDENCE_RANK[best.confidence]):
            best = match

    if best is None:
        logger.debug(f"Column '{header.key}' did not match any payslip field")
        return ColumnMapping(header.key, header.key, OTHER, LOW)
    return ColumnMapping(header.key, best.field, best.category, best.confidence)


def map_columns(headers):
    """Accepts RawHeader objects or plain header strings."""
    mappings = []
    for index, header in enumerate(headers):
        if isinstance(header, str):
            header = RawHeader(index, header)
        mappings.append(map_column(header))
    return mappings


def _has_identity_column(label, field_name, detected_columns, mappings):
    if any(m.suggested_field == field_name and m.is_mapped for m in mappings):
        return True
    wanted = normalize_text(label)
    compact = wanted.replace(' ', '')
    return any(wanted in normalize_text(c) or compact in normalize_text(c) for c in detected_columns)


# --- Flexible path ---

def validate_flexible(grid):
    """
    Extracts every column and row from a sheet of any layout and suggests a
    payslip field for each column.

    Returns:
        FlexibleValidationResult: always valid; problems surface as warnings.
    """
    result = FlexibleValidationResult()

    if grid.is_empty:
        result.warnings.append('Empty or invalid spreadsheet detected')
        return result

    extraction = analyze_structure(grid)
    if extraction.is_empty:
        result.warnings.append(f'No column headers found in the first {HEADER_SCAN_ROWS} rows')
        return result

    result.headers = extraction.headers
    result.detected_columns = extraction.column_keys
    result.info.append(f'Detected {len(result.detected_columns)} columns in your spreadsheet')
    if extraction.sub_header_row is not None:
        result.info.append(
            f'Two-row header detected (rows {extraction.header_row + 1} and {extraction.sub_header_row + 1})'
        )

    result.suggested_mappings = map_columns(extraction.headers)
    unmapped = [m.detected_column for m in result.suggested_mappings if not m.is_mapped]
    if unmapped:
        result.info.append(f'{len(unmapped)} columns kept as-is without a matching payslip field')

    result.data = extraction.rows
    result.info.append(f'Found {len(result.data)} data rows ready for payslip generation')

    # Gentle nudges for commonly expected fields
    for label, field_name in EXPECTED_IDENTITY_FIELDS:
        if not _has_identity_column(label, field_name, result.detected_columns, result.suggested_mappings):
            result.warnings.append(f'Consider adding "{label}" for better payslip organization')

    return result


def summarize_mappings(mappings):
    """Counts of mapped columns per category, for display."""
    summary = {category: 0 for category in CATEGORIES}
    for mapping in mappings:
        summary[mapping.category] = summary.get(mapping.category, 0) + 1
    return summary


# --- Strict path ---

def _strict_headers(grid, header_row):
    headers = []
    for col in range(min(grid.width, MAX_COLUMNS)):
        text = header_text(grid.cell(header_row, col))
        if text:
            headers.append(RawHeader(col, text))
        elif headers:
            break
    return headers


def validate_strict(grid):
    """
    Checks a sheet against the fixed payroll template: every template column
    must be present and every row needs an employee name and code.

    Returns:
        StrictValidationResult: `data` holds whatever rows could be read, even
        when the sheet is invalid.
    """
    result = StrictValidationResult()

    if grid.is_empty:
        result.errors.append('Empty or invalid spreadsheet')
        return result

    header_row = find_header_row(grid, used_width(grid))
    headers = _strict_headers(grid, header_row) if header_row is not None else []
    if not headers:
        result.errors.append('No headers found in spreadsheet')
        return result

    detected = [header.key for header in headers]

    result.missing_columns = [col for col in STRICT_COLUMNS if col not in detected]
    if result.missing_columns:
        result.errors.append(f"Missing required columns: {', '.join(result.missing_columns)}")

    result.extra_columns = [col for col in detected if col not in STRICT_COLUMNS]
    if result.extra_columns:
        result.warnings.append(f"Extra columns detected: {', '.join(result.extra_columns)}")

    for index, record in iter_data_rows(grid, headers, header_row + 1):
        for column in STRICT_REQUIRED_ROW_FIELDS:
            if is_blank(record.get(column)):
                result.errors.append(f'Row {index + 1}: {column} is required')
        result.data.append(record)

    if not result.data:
        result.errors.append('No data rows found in spreadsheet')

    result.is_valid = not result.errors
    logger.info(
        f"Strict validation: {len(detected)} columns, {len(result.data)} rows, "
        f"{len(result.errors)} errors, {len(result.warnings)} warnings"
    )
    return result
