"""
Plain-text labels for ESC/POS style thermal printers.

The printer prints text line by line, so a label is a string whose lines
never exceed the column count of the paper roll.
"""
from django.utils import timezone


THERMAL_SETTINGS_KEY = 'thermal_printer'

DEFAULT_THERMAL_SETTINGS = {
    'printer_type': 'thermal',
    'paper_width': '80mm',
    'density': 'medium',
    'speed': 'medium',
    'connection': 'usb',
    'copies': 1,
    'cut_after_print': True,
    'include_date': True,
    'include_company_logo': True,
    'custom_text': '',
}

PAPER_COLUMNS = {
    '58mm': 32,
    '80mm': 48,
    '110mm': 64,
}

ITEM_TYPES = ('product', 'order', 'material')

COMPANY_NAME = 'BIOBOX'
COMPANY_TAGLINE = 'Sistema de Produção'


def paper_columns(paper_width):
    """Characters per line for a paper roll width"""
    return PAPER_COLUMNS.get(paper_width, PAPER_COLUMNS['110mm'])


def format_quantity(value):
    text = f"{value:f}"
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return text


def _center(text, width):
    return ' ' * max(0, (width - len(text)) // 2) + text


def pseudo_barcode(code, width):
    """One bar per code character, at most ``width`` long"""
    return '|' * min(len(code or ''), width)


def build_thermal_label(item, settings=None, now=None):
    """
    Build one text label.

    ``item`` needs ``code`` and ``name`` and may carry ``description`` and
    ``quantity``; ``settings`` is merged over DEFAULT_THERMAL_SETTINGS.
    """
    options = {**DEFAULT_THERMAL_SETTINGS, **(settings or {})}
    width = paper_columns(options['paper_width'])
    code = str(item.get('code') or '')
    lines = []

    if options['include_company_logo']:
        lines.append('=' * width)
        lines.append(_center(COMPANY_NAME, width))
        lines.append(_center(COMPANY_TAGLINE, width))
        lines.append('=' * width)
        lines.append('')

    lines.append(f"CÓDIGO: {code}")
    lines.append(f"ITEM: {item.get('name', '')}")
    if item.get('description'):
        lines.append(f"DESC: {item['description']}")
    if item.get('quantity') not in (None, ''):
        lines.append(f"QTD: {item['quantity']}")

    lines.append('')
    lines.append(pseudo_barcode(code, width))
    lines.append(_center(code, width))

    if options['include_date']:
        current = timezone.localtime(now or timezone.now())
        lines.append('')
        lines.append(f"DATA: {current.strftime('%d/%m/%Y %H:%M')}")

    custom_text = (options.get('custom_text') or '').strip()
    if custom_text:
        lines.append('')
        lines.append(custom_text)

    lines.append('')
    lines.append('-' * width)
    return '\n'.join(lines) + '\n'


def build_print_job(items, settings=None, now=None):
    """All labels for a print job, each repeated ``copies`` times"""
    options = {**DEFAULT_THERMAL_SETTINGS, **(settings or {})}
    copies = max(1, int(options.get('copies') or 1))
    labels = []
    for item in items:
        label = build_thermal_label(item, options, now=now)
        labels.extend([label] * copies)
    return labels


def product_print_item(product, quantity=1):
    return {
        'type': 'product',
        'code': product.sku,
        'name': product.name,
        'description': product.get_category_display(),
        'quantity': quantity,
    }


def order_print_item(order):
    return {
        'type': 'order',
        'code': order.order_number,
        'name': order.customer_name,
        'description': order.get_status_display(),
        'quantity': order.resolved_total_quantity(),
    }


def material_print_item(material):
    return {
        'type': 'material',
        'code': f"MAT-{material.pk:05d}",
        'name': material.name,
        'description': material.supplier,
        'quantity': f"{format_quantity(material.quantity)} {material.unit}",
    }
