"""
Customer spreadsheet import.

The commercial policy workbook lists one business customer per row under the
headers CNPJ, REGIÃO, RAZÃO SOCIAL and EMAIL. Rows without CNPJ or company
name are counted as errors and skipped. Existing customers are matched by
document and updated in place.
"""
import csv
import logging
from django.db import transaction
from openpyxl import load_workbook

from .models import Customer, only_digits

logger = logging.getLogger(__name__)

BATCH_SIZE = 500

COLUMN_DOCUMENT = 'CNPJ'
COLUMN_REGION = 'REGIÃO'
COLUMN_NAME = 'RAZÃO SOCIAL'
COLUMN_EMAIL = 'EMAIL'


class ImportResult:
    def __init__(self):
        self.created = 0
        self.updated = 0
        self.errors = 0
        self.messages = []

    @property
    def imported(self):
        return self.created + self.updated

    def as_dict(self):
        return {
            'created': self.created,
            'updated': self.updated,
            'imported': self.imported,
            'errors': self.errors,
        }


def _clean(value):
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def read_xlsx_rows(path, sheet_name='Planilha1', header_row=3):
    """Yield dicts keyed by the header found on ``header_row`` (1-based)"""
    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        if sheet_name not in workbook.sheetnames:
            raise ValueError(f"Sheet '{sheet_name}' not found in {path}")
        sheet = workbook[sheet_name]
        headers = None
        for index, row in enumerate(sheet.iter_rows(values_only=True), start=1):
            if index < header_row:
                continue
            if index == header_row:
                headers = [_clean(cell).upper() for cell in row]
                continue
            if not any(cell not in (None, '') for cell in row):
                continue
            yield dict(zip(headers, row))
    finally:
        workbook.close()


def read_csv_rows(path):
    with open(path, 'r', encoding='utf-8-sig', newline='') as f:
        reader = csv.DictReader(f)
        for row in reader:
            yield {(key or '').strip().upper(): value for key, value in row.items()}


def import_customer_rows(rows, dry_run=False, batch_size=BATCH_SIZE):
    """Create or update customers from spreadsheet rows"""
    result = ImportResult()
    batch = []
    seen = set()

    def flush():
        if not batch or dry_run:
            batch.clear()
            return
        with transaction.atomic():
            for document, values in batch:
                _, created = Customer.objects.update_or_create(document=document, defaults=values)
                if created:
                    result.created += 1
                else:
                    result.updated += 1
        logger.info(f"Customer import: {result.imported} customers processed")
        batch.clear()

    for line_number, row in enumerate(rows, start=1):
        document = only_digits(_clean(row.get(COLUMN_DOCUMENT)))
        name = _clean(row.get(COLUMN_NAME))
        if not document or not name:
            result.errors += 1
            result.messages.append(f"Row {line_number}: missing CNPJ or company name")
            continue

        values = {
            'name': name,
            'region': _clean(row.get(COLUMN_REGION)),
            'email': _clean(row.get(COLUMN_EMAIL)),
            'customer_type': 'business' if len(document) == 14 else 'individual',
        }
        batch.append((document, values))
        if dry_run:
            # Mirrors update_or_create: known or repeated documents are updates
            if document in seen or Customer.objects.filter(document=document).exists():
                result.updated += 1
            else:
                result.created += 1
        seen.add(document)
        if len(batch) >= batch_size:
            flush()

    flush()
    return result
