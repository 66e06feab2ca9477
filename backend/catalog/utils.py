"""
Utility functions for catalog operations
"""
from decimal import Decimal, ROUND_HALF_UP
from django.utils import timezone
import random
import uuid


CATEGORY_PREFIXES = {
    'bed': 'CAM',
    'mattress': 'COL',
    'pillow': 'TRV',
    'protector': 'PRT',
    'accessory': 'ACS',
}

# GS1 prefix for Brazil; the rest of the code is random
EAN_COUNTRY_PREFIX = '789'


def generate_unique_sku(base_name=None, category=None):
    """Generate a unique SKU: CATEGORY-NAME-DATE-RANDOM"""
    from backend.catalog.models import Product

    prefix = CATEGORY_PREFIXES.get(category, 'PRD')
    name_part = ''.join(ch for ch in (base_name or '').upper() if ch.isalnum())[:4] or 'ITEM'
    timestamp = timezone.now().strftime('%y%m%d')
    unique_id = str(uuid.uuid4())[:6].upper()
    sku = f"{prefix}-{name_part}-{timestamp}-{unique_id}"

    # Ensure uniqueness
    while Product.objects.filter(sku=sku).exists():
        unique_id = str(uuid.uuid4())[:6].upper()
        sku = f"{prefix}-{name_part}-{timestamp}-{unique_id}"

    return sku


def ean13_check_digit(digits):
    """Check digit for the first 12 digits of an EAN-13 code"""
    if len(digits) != 12 or not digits.isdigit():
        raise ValueError('EAN-13 check digit needs exactly 12 digits')
    total = sum(int(d) * (3 if i % 2 else 1) for i, d in enumerate(digits))
    return str((10 - total % 10) % 10)


def is_valid_ean13(code):
    code = str(code or '')
    return len(code) == 13 and code.isdigit() and ean13_check_digit(code[:12]) == code[12]


def generate_ean13():
    body = EAN_COUNTRY_PREFIX + ''.join(random.choices('0123456789', k=9))
    return body + ean13_check_digit(body)


def generate_unique_ean13():
    from backend.catalog.models import Product

    code = generate_ean13()
    while Product.objects.filter(barcode=code).exists():
        code = generate_ean13()
    return code


def _modifier(value):
    if value in (None, ''):
        return Decimal('1')
    return Decimal(str(value))


def _find_option(options, name):
    """Find an option dict by name (case-insensitive)"""
    if not name:
        return None
    wanted = str(name).strip().lower()
    for option in options or []:
        if str(option.get('name', '')).strip().lower() == wanted:
            return option
    return None


def calculate_unit_price(product, model=None, size=None, color=None, fabric=None, specifications=None):
    """
    Unit price of a configured product.

    The base price is multiplied by the model modifier, the selected size,
    color and fabric modifiers and the modifier of every selected
    specification option. Unknown selections count as 1.
    """
    price = Decimal(product.base_price)

    if model is not None:
        price *= _modifier(model.price_modifier)
        for options, selected in ((model.sizes, size), (model.colors, color), (model.fabrics, fabric)):
            option = _find_option(options, selected)
            if option:
                price *= _modifier(option.get('price_modifier'))

    for spec in product.specifications or []:
        selected = (specifications or {}).get(spec.get('name'))
        if selected is None:
            continue
        modifiers = spec.get('price_modifiers') or {}
        price *= _modifier(modifiers.get(selected))

    return price.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def validate_specifications(product, selected):
    """Return a list of errors for missing required or unknown specification options"""
    errors = []
    selected = selected or {}
    for spec in product.specifications or []:
        name = spec.get('name')
        value = selected.get(name)
        if value in (None, ''):
            if spec.get('required'):
                errors.append(f"Specification '{name}' is required")
            continue
        options = spec.get('options') or []
        if options and value not in options:
            errors.append(f"'{value}' is not a valid option for '{name}'")
    return errors
