"""
Management command to import customers from the commercial policy spreadsheet
"""
import os
from django.core.management.base import BaseCommand, CommandError
from backend.customers.importer import import_customer_rows, read_csv_rows, read_xlsx_rows, BATCH_SIZE
from backend.customers.models import Customer


class Command(BaseCommand):
    help = "Imports customers from an .xlsx workbook (or .csv) with CNPJ, REGIÃO, RAZÃO SOCIAL and EMAIL columns"

    def add_arguments(self, parser):
        parser.add_argument('file', type=str, help='Path to the .xlsx or .csv file')
        parser.add_argument(
            '--sheet',
            type=str,
            default='Planilha1',
            help='Worksheet name (default: Planilha1)',
        )
        parser.add_argument(
            '--header-row',
            type=int,
            default=3,
            help='Row holding the column headers, 1-based (default: 3)',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=BATCH_SIZE,
            help=f'Rows committed per transaction (default: {BATCH_SIZE})',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Validate the file without writing to the database',
        )

    def handle(self, *args, **options):
        path = options['file']
        if not os.path.exists(path):
            raise CommandError(f"File not found: {path}")

        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(self.style.SUCCESS("IMPORTING CUSTOMERS"))
        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(f"File: {path}")

        try:
            if path.lower().endswith('.csv'):
                rows = read_csv_rows(path)
            else:
                rows = read_xlsx_rows(path, sheet_name=options['sheet'], header_row=options['header_row'])
            result = import_customer_rows(rows, dry_run=options['dry_run'], batch_size=options['batch_size'])
        except ValueError as e:
            raise CommandError(str(e))

        for message in result.messages:
            self.stdout.write(self.style.WARNING(f"  ⊘ {message}"))

        self.stdout.write(self.style.SUCCESS("\n" + "=" * 80))
        self.stdout.write(self.style.SUCCESS("SUMMARY" + (" (dry run)" if options['dry_run'] else "")))
        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(f"Customers Created: {result.created}")
        self.stdout.write(f"Customers Updated: {result.updated}")
        if result.errors > 0:
            self.stdout.write(self.style.ERROR(f"Rows with Errors: {result.errors}"))
        self.stdout.write(f"Total Customers in Database: {Customer.objects.count()}")
        self.stdout.write(self.style.SUCCESS("=" * 80))
