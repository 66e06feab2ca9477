"""
Order fragmentation: splitting an order's units into dated production batches.

A fragment set is valid when the fragment quantities add up exactly to the
order's total quantity, every fragment has a positive quantity and every
fragment has a scheduled date. Each fragment carries its share of the order
value in proportion to its quantity.
"""
import math
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.utils import timezone


class FragmentValidationError(ValueError):
    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__('; '.join(self.errors))


def resolve_total_quantity(order):
    return order.resolved_total_quantity()


def fragment_value(quantity, total_quantity, total_value):
    """Share of ``total_value`` for ``quantity`` out of ``total_quantity`` units"""
    if not total_quantity:
        return Decimal('0.00')
    share = Decimal(str(total_value)) * Decimal(quantity) / Decimal(total_quantity)
    return share.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def default_fragments(order):
    """Initial proposal: one fragment holding a quarter of the units"""
    total = resolve_total_quantity(order)
    return [{
        'fragment_number': 1,
        'quantity': math.ceil(total / 4),
        'scheduled_date': order.scheduled_date or timezone.localdate(),
        'status': 'pending',
        'progress': 0,
    }]


def next_fragment(fragments, total_quantity):
    """Proposal for the fragment after ``fragments``: remaining units, one day later"""
    allocated = sum(int(f.get('quantity') or 0) for f in fragments)
    remaining = total_quantity - allocated
    last_date = fragments[-1].get('scheduled_date') if fragments else None
    return {
        'fragment_number': len(fragments) + 1,
        'quantity': remaining if remaining > 0 else 1,
        'scheduled_date': last_date + timedelta(days=1) if last_date else timezone.localdate(),
        'status': 'pending',
        'progress': 0,
    }


def validate_fragments(fragments, total_quantity):
    """Return a list of error messages; empty when the fragment set is valid"""
    errors = []
    if not fragments:
        return ['At least one fragment is required']

    allocated = 0
    for index, fragment in enumerate(fragments, start=1):
        quantity = fragment.get('quantity')
        if quantity is None or int(quantity) <= 0:
            errors.append(f'Fragment {index}: quantity must be greater than zero')
        else:
            allocated += int(quantity)
        if not fragment.get('scheduled_date'):
            errors.append(f'Fragment {index}: scheduled date is required')

    if allocated != total_quantity:
        difference = allocated - total_quantity
        direction = 'exceeds' if difference > 0 else 'is short of'
        errors.append(
            f'Fragment quantities add up to {allocated}, which {direction} the order total of '
            f'{total_quantity} by {abs(difference)}'
        )
    return errors


def fragment_summary(order):
    total = resolve_total_quantity(order)
    fragments = list(order.fragments.all())
    allocated = sum(f.quantity for f in fragments)
    return {
        'total_quantity': total,
        'allocated_quantity': allocated,
        'remaining_quantity': total - allocated,
        'fragment_count': len(fragments),
        'total_value': float(sum((f.value for f in fragments), Decimal('0.00'))),
        'is_valid': bool(fragments) and not validate_fragments(
            [{'quantity': f.quantity, 'scheduled_date': f.scheduled_date} for f in fragments], total
        ),
        'completed_quantity': sum(f.quantity for f in fragments if f.status == 'completed'),
    }


def replace_fragments(order, fragments):
    """
    Validate and store a new fragment set for ``order``.

    Fragment numbers are reassigned 1..n in the given order; values are split
    from the order total.
    """
    from .models import OrderFragment

    total = resolve_total_quantity(order)
    errors = validate_fragments(fragments, total)
    if errors:
        raise FragmentValidationError(errors)

    with transaction.atomic():
        order.fragments.all().delete()
        created = []
        for number, data in enumerate(fragments, start=1):
            created.append(OrderFragment.objects.create(
                order=order,
                fragment_number=number,
                quantity=int(data['quantity']),
                scheduled_date=data['scheduled_date'],
                status=data.get('status') or 'pending',
                progress=data.get('progress') or 0,
                assigned_operator=data.get('assigned_operator') or '',
                value=fragment_value(int(data['quantity']), total, order.total_amount),
            ))
        order.is_fragmented = True
        if not order.total_quantity:
            order.total_quantity = total
        order.save(update_fields=['is_fragmented', 'total_quantity', 'updated_at'])
    return created


def update_fragment_progress(fragment, status=None, progress=None, assigned_operator=None):
    """Apply a status/progress change, stamping start and completion times"""
    now = timezone.now()
    if assigned_operator is not None:
        fragment.assigned_operator = assigned_operator
    if progress is not None:
        fragment.progress = max(0, min(100, int(progress)))
        if status is None and fragment.progress == 100:
            status = 'completed'
        elif status is None and fragment.progress > 0 and fragment.status == 'pending':
            status = 'in_production'
    if status is not None:
        fragment.status = status
        if status == 'in_production' and not fragment.started_at:
            fragment.started_at = now
        elif status == 'completed':
            fragment.completed_at = fragment.completed_at or now
            fragment.started_at = fragment.started_at or now
            fragment.progress = 100
        elif status == 'pending':
            fragment.completed_at = None
    fragment.save()

    order = fragment.order
    fragments = list(order.fragments.all())
    total_units = sum(f.quantity for f in fragments) or 1
    weighted = sum(f.quantity * f.progress for f in fragments) / total_units
    if order.is_fragmented and order.status == 'in_production':
        order.production_progress = max(order.production_progress, int(round(weighted)))
        order.save(update_fields=['production_progress', 'updated_at'])
    return fragment
