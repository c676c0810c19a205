# ==============================================================================
# payportal/payroll/__init__.py
# ------------------------------------------------------------------------------
# Spreadsheet-to-payslip ingestion: header normalization, structure analysis,
# validation, record conversion and salary recalculation.
# ==============================================================================

from .fields import FIELD_DICTIONARY, CANONICAL_FIELDS, STRICT_COLUMNS
from .normalizer import ColumnMapping, match_header, normalize_header
from .structure import SpreadsheetReadError, read_sheet, expand_merged_cells, analyze_structure
from .validator import validate_flexible, validate_strict
from .converter import PayslipRecord, convert_row, convert_rows, convert_strict_row, convert_strict_rows
from .salary import compute_totals, estimate_components
