# tests/test_exports.py

import io
import os
import re
from datetime import datetime

import pandas as pd
import pytest

from payportal import exports
from payportal.exports import (ExportError, export_filename, html_to_pdf, to_csv_bytes, to_excel_bytes,
                               to_html_table)
from payportal.storage import BlobStorageError, LocalBlobStorage

ROWS = [
    {'employee_name': 'Asha Patel', 'employee_code': 'E001', 'basic_salary': 25000.0, 'hra': 10000.0,
     'total_earning_gross': 35000.0, 'net_salary': 32000.0},
    {'employee_name': 'Ravi Shah', 'employee_code': 'E002', 'basic_salary': 20000.0, 'hra': 8000.0,
     'total_earning_gross': 28000.0, 'net_salary': None},
]

COLUMNS = [('employee_name', 'Employee Name'), ('employee_code', 'Employee Code'),
           ('total_earning_gross', 'Gross Earnings'), ('net_salary', 'Net Salary')]


# --- Exports ---

def test_csv_export_uses_column_labels_in_order():
    lines = to_csv_bytes(ROWS, COLUMNS).decode('utf-8').splitlines()
    assert lines[0] == 'Employee Name,Employee Code,Gross Earnings,Net Salary'
    assert lines[1] == 'Asha Patel,E001,35000.0,32000.0'
    assert lines[2] == 'Ravi Shah,E002,28000.0,'


def test_excel_export_reads_back():
    frame = pd.read_excel(io.BytesIO(to_excel_bytes(ROWS, COLUMNS)), sheet_name='Payslips')
    assert list(frame.columns) == [label for _, label in COLUMNS]
    assert frame['Net Salary'].iloc[0] == 32000
    assert frame['Employee Code'].tolist() == ['E001', 'E002']


def test_html_table_formats_amounts():
    html = to_html_table(ROWS, COLUMNS, title='Payslip Report')
    assert '<h3>Payslip Report</h3>' in html
    assert '35,000.00' in html
    assert 'Asha Patel' in html


def test_pdf_failure_raises_export_error(monkeypatch):
    def broken(*args, **kwargs):
        raise OSError('No wkhtmltopdf executable found')
    monkeypatch.setattr(exports.pdfkit, 'from_string', broken)

    with pytest.raises(ExportError):
        html_to_pdf('<p>payslip</p>')


def test_pdf_is_rendered_by_pdfkit(monkeypatch):
    calls = []

    def fake(html, output, **kwargs):
        calls.append((html, output))
        return b'%PDF-1.4'
    monkeypatch.setattr(exports.pdfkit, 'from_string', fake)

    assert html_to_pdf('<p>payslip</p>') == b'%PDF-1.4'
    assert calls == [('<p>payslip</p>', False)]


def test_export_filename():
    now = datetime(2025, 3, 31, 18, 5, 9)
    assert export_filename('csv', now=now) == 'payslips_20250331_180509.csv'
    assert export_filename('xlsx', 'Helper', now=now) == 'payslips_Helper_20250331_180509.xlsx'
    assert re.match(r'^payslips_\d{8}_\d{6}\.pdf$', export_filename('pdf'))


# --- Blob storage ---

def test_store_writes_the_blob_and_returns_its_url(tmp_path):
    storage = LocalBlobStorage(str(tmp_path), '/blobs/')

    url = storage.store(b'%PDF', 'documents/1/a.pdf')

    assert url == '/blobs/documents/1/a.pdf'
    assert (tmp_path / 'documents' / '1' / 'a.pdf').read_bytes() == b'%PDF'


def test_store_replaces_an_existing_blob(tmp_path):
    storage = LocalBlobStorage(str(tmp_path), '/blobs')
    storage.store(b'old', 'a.txt')
    storage.store(b'new', 'a.txt')
    assert (tmp_path / 'a.txt').read_bytes() == b'new'


@pytest.mark.parametrize('path', ['../escape.txt', 'documents/../../escape.txt', ''])
def test_store_rejects_paths_outside_the_root(tmp_path, path):
    storage = LocalBlobStorage(str(tmp_path / 'blobs'), '/blobs')
    with pytest.raises(BlobStorageError):
        storage.store(b'x', path)
    assert not os.path.exists(tmp_path / 'escape.txt')
