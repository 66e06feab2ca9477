"""
Order status workflow.

Orders move pending -> confirmed -> in_production -> quality_check -> ready
-> delivered. Early orders may be cancelled. Every move is a named action
guarded by a permission and may raise the production progress floor.
"""
import logging
from django.db import transaction
from django.utils import timezone

from backend.core.permissions import check_permission
from backend.core.utils import log_activity

logger = logging.getLogger(__name__)


class OrderWorkflowError(ValueError):
    """Raised when an action is not allowed for the order's current status"""


STATUS_ALIASES = {
    'pendente': 'pending',
    'pendent': 'pending',
    'aguardando': 'pending',
    'aguardando aprovação': 'awaiting_approval',
    'aguardando aprovacao': 'awaiting_approval',
    'aguardando_aprovacao': 'awaiting_approval',
    'confirmado': 'confirmed',
    'confirmada': 'confirmed',
    'aprovado': 'confirmed',
    'em produção': 'in_production',
    'em producao': 'in_production',
    'em_producao': 'in_production',
    'producao': 'in_production',
    'producing': 'in_production',
    'production': 'in_production',
    'controle de qualidade': 'quality_check',
    'checagem_qualidade': 'quality_check',
    'qualidade': 'quality_check',
    'quality': 'quality_check',
    'pronto': 'ready',
    'prontos': 'ready',
    'entregue': 'delivered',
    'concluido': 'delivered',
    'concluído': 'delivered',
    'completed': 'delivered',
    'finalizado': 'delivered',
    'cancelado': 'cancelled',
    'cancelada': 'cancelled',
    'canceled': 'cancelled',
}

OPEN_STATUSES = ['pending', 'awaiting_approval', 'confirmed', 'in_production', 'quality_check', 'ready']
CLOSED_STATUSES = ['delivered', 'cancelled']


def normalize_status(value):
    """Map Portuguese and legacy status strings onto workflow statuses"""
    if value is None:
        return 'pending'
    text = str(value).strip().lower()
    if not text:
        return 'pending'
    return STATUS_ALIASES.get(text, text)


# action -> (allowed source statuses, target status, permission action, progress rule)
TRANSITIONS = {
    'approve': (('pending', 'awaiting_approval'), 'confirmed', 'approve', ('set', 0)),
    'start_production': (('confirmed',), 'in_production', 'advance', ('floor', 10)),
    'send_to_quality': (('in_production',), 'quality_check', 'advance', ('floor', 80)),
    'mark_ready': (('quality_check',), 'ready', 'advance', ('set', 100)),
    'deliver': (('ready',), 'delivered', 'deliver', ('set', 100)),
    'cancel': (('pending', 'awaiting_approval', 'confirmed'), 'cancelled', 'cancel', None),
}

ACTION_LABELS = {
    'approve': 'Aprovar',
    'start_production': 'Iniciar Produção',
    'send_to_quality': 'Enviar para Qualidade',
    'mark_ready': 'Marcar como Pronto',
    'deliver': 'Entregar',
    'cancel': 'Cancelar',
}


def available_actions(order, user):
    """Actions the user may run on the order right now"""
    actions = []
    for action, (sources, target, permission, _) in TRANSITIONS.items():
        if order.status in sources and check_permission(user, 'orders', permission):
            actions.append({'action': action, 'label': ACTION_LABELS[action], 'target_status': target})
    return actions


def _apply_progress(order, rule):
    if rule is None:
        return
    kind, value = rule
    if kind == 'set':
        order.production_progress = value
    else:
        order.production_progress = max(order.production_progress or 0, value)


def apply_transition(order, action, user=None, request=None, notes=None):
    """
    Run a workflow action on ``order``.

    Raises OrderWorkflowError for unknown actions or a wrong source status and
    PermissionError when ``user`` lacks the action's permission.
    """
    if action not in TRANSITIONS:
        raise OrderWorkflowError(f"Unknown action '{action}'")
    sources, target, permission, progress_rule = TRANSITIONS[action]

    if user is not None and not check_permission(user, 'orders', permission):
        raise PermissionError(f'Permission denied: orders:{permission}')
    if order.status not in sources:
        raise OrderWorkflowError(
            f"Cannot {action.replace('_', ' ')} an order with status '{order.status}'"
        )

    old_status = order.status
    with transaction.atomic():
        order.status = target
        _apply_progress(order, progress_rule)
        if target == 'delivered':
            order.completed_date = timezone.now()
        if notes:
            order.notes = f"{order.notes}\n{notes}".strip()
        order.save()

        if target == 'in_production':
            from backend.production.stages import ensure_stages
            ensure_stages(order)

    logger.info(f"Order {order.order_number}: {old_status} -> {target} ({action})")
    log_activity(
        request=request,
        user=user,
        action_type='complete' if target == 'delivered' else 'update',
        entity_type='order',
        entity_id=order.id,
        entity_name=order.order_number,
        description=f'Pedido {order.order_number}: {ACTION_LABELS[action]}',
        metadata={'action': action, 'old_status': old_status, 'new_status': target},
    )
    return order
