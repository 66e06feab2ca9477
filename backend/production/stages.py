"""
Fixed production stage sequence and per-order stage tracking.
"""
import logging
from django.db import transaction
from django.utils import timezone

from backend.core.utils import log_activity

logger = logging.getLogger(__name__)


PRODUCTION_STAGES = [
    {'id': 'cutting_sewing', 'name': 'Corte e Costura', 'estimated_minutes': 120, 'order': 1},
    {'id': 'carpentry', 'name': 'Marcenaria', 'estimated_minutes': 180, 'order': 2},
    {'id': 'upholstery', 'name': 'Tapeçaria', 'estimated_minutes': 240, 'order': 3},
    {'id': 'assembly', 'name': 'Montagem', 'estimated_minutes': 90, 'order': 4},
    {'id': 'packaging', 'name': 'Embalagem', 'estimated_minutes': 30, 'order': 5},
    {'id': 'delivery', 'name': 'Entrega', 'estimated_minutes': 60, 'order': 6},
]

STAGE_IDS = [stage['id'] for stage in PRODUCTION_STAGES]
STAGES_BY_ID = {stage['id']: stage for stage in PRODUCTION_STAGES}

# action -> resulting stage status
STAGE_ACTIONS = {
    'start': 'in_progress',
    'complete': 'completed',
    'pause': 'pending',
    'reopen': 'in_progress',
}


class StageError(ValueError):
    pass


def ensure_stages(order):
    """Create any missing stage rows for ``order`` as pending; return all rows in stage order"""
    from .models import OrderStage

    existing = set(order.stages.values_list('stage_id', flat=True))
    missing = [OrderStage(order=order, stage_id=stage_id) for stage_id in STAGE_IDS if stage_id not in existing]
    if missing:
        OrderStage.objects.bulk_create(missing)
    return ordered_stages(order)


def ordered_stages(order):
    stages = {stage.stage_id: stage for stage in order.stages.all()}
    return [stages[stage_id] for stage_id in STAGE_IDS if stage_id in stages]


def stage_progress(stages):
    """Percentage of the six stages that are completed"""
    completed = sum(1 for stage in stages if stage.status == 'completed')
    return round(completed / len(PRODUCTION_STAGES) * 100)


def current_stage(stages):
    """First stage that is not completed, or None when all are done"""
    by_id = {stage.stage_id: stage for stage in stages}
    for stage_id in STAGE_IDS:
        stage = by_id.get(stage_id)
        if stage is None or stage.status != 'completed':
            return STAGES_BY_ID[stage_id]
    return None


def remaining_minutes(stages):
    done = {stage.stage_id for stage in stages if stage.status == 'completed'}
    return sum(stage['estimated_minutes'] for stage in PRODUCTION_STAGES if stage['id'] not in done)


def update_stage(order, stage_id, status=None, action=None, operator=None, notes=None, user=None, request=None):
    """
    Move one stage of ``order`` to a new status.

    Either ``status`` or ``action`` (start, complete, pause, reopen) selects the
    new status. The order's production progress is recomputed from the
    stages; completing the last stage of an in-production order sends it to
    quality check.
    """
    if stage_id not in STAGES_BY_ID:
        raise StageError(f"Unknown stage '{stage_id}'")
    if action is not None:
        if action not in STAGE_ACTIONS:
            raise StageError(f"Unknown stage action '{action}'")
        status = STAGE_ACTIONS[action]
    if status is not None and status not in ('pending', 'in_progress', 'completed'):
        raise StageError(f"Invalid stage status '{status}'")
    if order.status in ('delivered', 'cancelled'):
        raise StageError(f'Stages of a {order.status} order cannot be changed')

    now = timezone.now()
    with transaction.atomic():
        stages = ensure_stages(order)
        stage = next(s for s in stages if s.stage_id == stage_id)
        old_status = stage.status

        if status is not None:
            stage.status = status
            if status == 'in_progress':
                stage.started_at = stage.started_at or now
                stage.completed_at = None
            elif status == 'completed':
                stage.started_at = stage.started_at or now
                stage.completed_at = now
            else:
                stage.completed_at = None
        if operator is not None:
            stage.assigned_operator = operator
        if notes is not None:
            stage.notes = notes
        stage.save()

        order.production_progress = stage_progress(stages)
        update_fields = ['production_progress', 'updated_at']
        advanced = False
        if order.status == 'in_production' and all(s.status == 'completed' for s in stages):
            order.status = 'quality_check'
            update_fields.append('status')
            advanced = True
        order.save(update_fields=update_fields)

    stage_name = STAGES_BY_ID[stage_id]['name']
    logger.info(f"Order {order.order_number} stage {stage_id}: {old_status} -> {stage.status}")
    if stage.status != old_status:
        log_activity(
            request=request,
            user=user,
            action_type='complete' if stage.status == 'completed' else 'update',
            entity_type='production',
            entity_id=order.id,
            entity_name=order.order_number,
            description=f'{stage_name}: {stage.get_status_display()} ({order.order_number})',
            metadata={'stage_id': stage_id, 'old_status': old_status, 'new_status': stage.status},
        )
    if advanced:
        logger.info(f"Order {order.order_number} finished all stages, moved to quality_check")
    return stage
