"""
Utility functions for order numbering and totals
"""
import random
from decimal import Decimal, ROUND_HALF_UP
from django.utils import timezone

CENT = Decimal('0.01')


def generate_order_number():
    """Generate a unique order number: ORD-{year}-{4 random digits}"""
    from backend.orders.models import Order

    year = timezone.now().year
    for _ in range(50):
        order_number = f"ORD-{year}-{random.randint(0, 9999):04d}"
        if not Order.objects.filter(order_number=order_number).exists():
            return order_number
    # The four-digit space for this year is crowded, widen the suffix
    order_number = f"ORD-{year}-{random.randint(0, 999999):06d}"
    while Order.objects.filter(order_number=order_number).exists():
        order_number = f"ORD-{year}-{random.randint(0, 999999):06d}"
    return order_number


def calculate_totals(line_totals, discount_percentage=Decimal('0.00')):
    """Subtotal, discount amount and total for a list of line totals"""
    subtotal = sum((Decimal(str(t)) for t in line_totals), Decimal('0.00')).quantize(CENT)
    discount_percentage = Decimal(str(discount_percentage or 0))
    if discount_percentage < 0 or discount_percentage > 100:
        raise ValueError('Discount percentage must be between 0 and 100')
    discount_amount = (subtotal * discount_percentage / Decimal('100')).quantize(CENT, rounding=ROUND_HALF_UP)
    return {
        'subtotal': subtotal,
        'discount_amount': discount_amount,
        'total_amount': subtotal - discount_amount,
    }


def recalculate_order_totals(order, save=True):
    """Refresh subtotal/discount/total from the order's items"""
    totals = calculate_totals([item.total_price for item in order.items.all()], order.discount_percentage)
    order.subtotal = totals['subtotal']
    order.discount_amount = totals['discount_amount']
    order.total_amount = totals['total_amount']
    if save:
        order.save(update_fields=['subtotal', 'discount_amount', 'total_amount', 'updated_at'])
    return order
