# ==============================================================================
# payportal/payroll/structure.py
# ------------------------------------------------------------------------------
# Loads the first sheet of an uploaded workbook and works out where its header
# row(s) and data rows are, without assuming any particular column layout.
# ==============================================================================

import io
import os
import csv
import math
import logging
from datetime import date, datetime, time, timedelta
from itertools import islice

import openpyxl
import pandas as pd

from .fields import (HEADER_SCAN_ROWS, MIN_HEADER_CELLS, MAX_COLUMNS, MAX_DATA_ROWS,
                     PLACEHOLDER_PREFIX)

logger = logging.getLogger(__name__)

# Header scan area, one sub-header row and the data block; nothing below is read
MAX_SHEET_ROWS = HEADER_SCAN_ROWS + 2 + MAX_DATA_ROWS


class SpreadsheetReadError(Exception):
    """Raised when an uploaded file cannot be opened as a spreadsheet."""


class MergedRange:
    """A block of cells sharing the value of its top-left cell (0-based, inclusive)."""

    __slots__ = ('min_row', 'min_col', 'max_row', 'max_col')

    def __init__(self, min_row, min_col, max_row, max_col):
        self.min_row = min_row
        self.min_col = min_col
        self.max_row = max_row
        self.max_col = max_col

    @property
    def spans_several_cells(self):
        return self.max_row > self.min_row or self.max_col > self.min_col

    def __repr__(self):
        return f'<MergedRange r{self.min_row}c{self.min_col}:r{self.max_row}c{self.max_col}>'


class SheetGrid:
    """Raw cell values of one sheet plus its merged-cell metadata."""

    def __init__(self, frame=None, merges=None):
        self.frame = frame if frame is not None else pd.DataFrame(dtype=object)
        self.merges = list(merges or [])

    @classmethod
    def from_rows(cls, rows, merges=None):
        return cls(pd.DataFrame([list(row) for row in rows], dtype=object), merges)

    @property
    def height(self):
        return self.frame.shape[0]

    @property
    def width(self):
        return self.frame.shape[1]

    @property
    def is_empty(self):
        return self.height == 0 or self.width == 0

    def cell(self, row, col):
        if row < 0 or col < 0 or row >= self.height or col >= self.width:
            return None
        return self.frame.iat[row, col]


class RawHeader:
    """One source column: its position and the header text(s) above it."""

    __slots__ = ('index', 'main', 'sub', 'key', 'is_placeholder')

    def __init__(self, index, main='', sub='', key=None, is_placeholder=False):
        self.index = index
        self.main = main
        self.sub = sub
        self.key = key or main or sub
        self.is_placeholder = is_placeholder

    @property
    def level(self):
        return 2 if self.sub else 1

    @property
    def display_name(self):
        return f'{self.main} - {self.sub}' if self.main and self.sub else self.key

    def __repr__(self):
        return f'<RawHeader {self.index}: {self.key!r}>'


class SpreadsheetExtraction:
    """Headers and data rows found in a sheet. Empty when no header row exists."""

    def __init__(self, headers=None, rows=None, header_row=None, sub_header_row=None,
                 data_start_row=None, row_numbers=None):
        self.headers = headers or []
        self.rows = rows or []
        self.header_row = header_row
        self.sub_header_row = sub_header_row
        self.data_start_row = data_start_row
        # 1-based sheet row of every extracted row, for error messages
        self.row_numbers = row_numbers or []

    @property
    def column_keys(self):
        return [header.key for header in self.headers]

    @property
    def hierarchy(self):
        """Main header -> sub headers grouped under it."""
        groups = {}
        for header in self.headers:
            if header.main and header.sub:
                groups.setdefault(header.main, []).append(header.sub)
        return groups

    @property
    def is_empty(self):
        return not self.headers


# --- Cell helpers ---

def is_blank(value):
    """True for None, NaN/NaT and whitespace-only strings."""
    if value is None or value is pd.NaT:
        return True
    if isinstance(value, float):
        return math.isnan(value)
    if isinstance(value, str):
        return not value.strip()
    return False


def clean_cell(value):
    """Turns a raw cell into a JSON-friendly value: '', str, int, float or bool."""
    if is_blank(value):
        return ''
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        # duration cells ([h]:mm) become hours
        return value.total_seconds() / 3600
    if hasattr(value, 'item') and not isinstance(value, str):
        # numpy scalars
        value = value.item()
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def header_text(value):
    """Header cell as a single-line string."""
    if is_blank(value):
        return ''
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return ' '.join(str(value).split())


# --- Loading ---

def _bounded_rows(reader):
    return [row[:MAX_COLUMNS] for row in islice(reader, MAX_SHEET_ROWS)]


def _read_csv_rows(source):
    # Rows may differ in length (title lines above the header); SheetGrid pads them
    if isinstance(source, (str, os.PathLike)):
        with open(source, newline='', encoding='utf-8-sig') as f:
            return _bounded_rows(csv.reader(f))
    text = source.read()
    if isinstance(text, bytes):
        text = text.decode('utf-8-sig')
    return _bounded_rows(csv.reader(io.StringIO(text, newline='')))


def read_sheet(source, filename=None):
    """
    Reads the first sheet of a .xlsx workbook (keeping merged-cell ranges) or a
    .csv file into a SheetGrid.

    Args:
        source: A path or a binary file-like object.
        filename (str): Original file name, used to pick the format when
            `source` is a stream.
    """
    name = filename or (source if isinstance(source, (str, os.PathLike)) else '')
    extension = os.path.splitext(str(name))[1].lower()

    if extension == '.csv':
        try:
            rows = _read_csv_rows(source)
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise SpreadsheetReadError(f'Could not read CSV file: {e}') from e
        logger.info(f"Loaded CSV with {len(rows)} rows")
        return SheetGrid.from_rows(rows)

    try:
        workbook = openpyxl.load_workbook(source, data_only=True)
    except Exception as e:
        raise SpreadsheetReadError(f'Could not read Excel workbook: {e}') from e

    try:
        if not workbook.worksheets:
            return SheetGrid()
        sheet = workbook.worksheets[0]
        max_row = min(sheet.max_row, MAX_SHEET_ROWS)
        max_col = min(sheet.max_column, MAX_COLUMNS)
        if sheet.max_row > max_row or sheet.max_column > max_col:
            logger.warning(f"Sheet '{sheet.title}' spans {sheet.max_row}x{sheet.max_column} cells, "
                           f"reading the first {max_row}x{max_col}")
        rows = list(sheet.iter_rows(min_row=1, max_row=max_row, min_col=1, max_col=max_col,
                                    values_only=True))
        merges = [
            MergedRange(rng.min_row - 1, rng.min_col - 1, rng.max_row - 1, rng.max_col - 1)
            for rng in sheet.merged_cells.ranges
        ]
    finally:
        workbook.close()

    logger.info(f"Loaded sheet '{sheet.title}' with {len(rows)} rows and {len(merges)} merged ranges")
    return SheetGrid.from_rows(rows, merges)


def expand_merged_cells(grid, row_limit=HEADER_SCAN_ROWS + 1):
    """
    Copies the text of each merged range into every cell it covers, for ranges
    starting inside the header scan area. Returns a new grid.
    """
    relevant = [m for m in grid.merges if m.min_row < row_limit and m.spans_several_cells]
    if not relevant or grid.is_empty:
        return grid

    frame = grid.frame.copy()
    for merge in relevant:
        value = grid.cell(merge.min_row, merge.min_col)
        for row in range(merge.min_row, min(merge.max_row, grid.height - 1) + 1):
            for col in range(merge.min_col, min(merge.max_col, grid.width - 1) + 1):
                frame.iat[row, col] = value
    return SheetGrid(frame, grid.merges)


# --- Analysis ---

def _row_values(grid, row, width):
    return [grid.cell(row, col) for col in range(width)]


def _non_blank_count(grid, row, width):
    return sum(1 for value in _row_values(grid, row, width) if not is_blank(value))


def used_width(grid):
    """Index after the last column holding any value, capped at MAX_COLUMNS."""
    for col in reversed(range(min(grid.width, MAX_COLUMNS))):
        if any(not is_blank(value) for value in grid.frame.iloc[:, col]):
            return col + 1
    return 0


def find_header_row(grid, width=None):
    """First of the top rows with more than MIN_HEADER_CELLS non-empty cells, or None."""
    width = used_width(grid) if width is None else width
    for row in range(min(HEADER_SCAN_ROWS, grid.height)):
        if _non_blank_count(grid, row, width) > MIN_HEADER_CELLS:
            return row
    return None


def _has_sub_header(grid, header_row, width):
    next_row = header_row + 1
    if next_row >= grid.height:
        return False

    main_cells = _row_values(grid, header_row, width)
    sub_cells = _row_values(grid, next_row, width)
    main_count = sum(1 for v in main_cells if not is_blank(v))
    sub_count = sum(1 for v in sub_cells if not is_blank(v))
    if sub_count <= main_count / 2:
        return False

    # Group headers merged over their sub-columns
    if any(m.min_row == header_row and m.spans_several_cells for m in grid.merges):
        return True

    # Unmerged two-row layout: group labels typed once, sub labels fill the gaps
    fills_gap = any(is_blank(main) and not is_blank(sub) for main, sub in zip(main_cells, sub_cells))
    all_text = all(isinstance(v, str) for v in sub_cells if not is_blank(v))
    return fills_gap and all_text


def build_headers(grid, header_row, sub_header_row, width):
    """One RawHeader per column; empty columns become Column_<n> placeholders."""
    headers = []
    seen = set()
    for col in range(width):
        main = header_text(grid.cell(header_row, col))
        sub = header_text(grid.cell(sub_header_row, col)) if sub_header_row is not None else ''
        if sub == main:
            sub = ''

        placeholder = not main and not sub
        if placeholder:
            key = f'{PLACEHOLDER_PREFIX}{col + 1}'
        elif main and sub:
            key = f'{main}_{sub}'
        else:
            key = main or sub

        # Repeated header text still gets its own key
        if key in seen:
            base, suffix = key, col + 1
            key = f'{base}_{suffix}'
            while key in seen:
                suffix += 1
                key = f'{base}_{suffix}'
        seen.add(key)
        headers.append(RawHeader(col, main, sub, key, placeholder))
    return headers


def iter_data_rows(grid, headers, start_row):
    """
    Yields (row_index, row_record) from `start_row` onwards. Leading blank rows
    are skipped; the first blank row after data ends the block.
    """
    collected = 0
    stop = min(grid.height, start_row + MAX_DATA_ROWS)
    for row in range(start_row, stop):
        values = [grid.cell(row, header.index) for header in headers]
        if all(is_blank(value) for value in values):
            if collected:
                break
            continue
        collected += 1
        yield row, {header.key: clean_cell(value) for header, value in zip(headers, values)}


def analyze_structure(grid):
    """
    Detects the header row (and an optional sub-header row), every column and
    the data rows beneath them.

    Returns:
        SpreadsheetExtraction: empty when no header row is found.
    """
    if grid.is_empty:
        return SpreadsheetExtraction()

    grid = expand_merged_cells(grid)
    width = used_width(grid)
    header_row = find_header_row(grid, width)
    if header_row is None:
        logger.info("No header row found in the first %d rows", HEADER_SCAN_ROWS)
        return SpreadsheetExtraction()

    sub_header_row = header_row + 1 if _has_sub_header(grid, header_row, width) else None
    data_start_row = (sub_header_row if sub_header_row is not None else header_row) + 1

    headers = build_headers(grid, header_row, sub_header_row, width)
    row_numbers, rows = [], []
    for index, record in iter_data_rows(grid, headers, data_start_row):
        row_numbers.append(index + 1)
        rows.append(record)

    logger.info(
        f"Header row {header_row + 1}"
        f"{f' with sub-header row {sub_header_row + 1}' if sub_header_row is not None else ''}: "
        f"{len(headers)} columns, {len(rows)} data rows"
    )
    return SpreadsheetExtraction(headers, rows, header_row, sub_header_row, data_start_row, row_numbers)
