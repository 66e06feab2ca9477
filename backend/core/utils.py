"""Utility functions for activity logging and JSON settings"""
import json
import logging

from .models import ActivityLog, Setting

logger = logging.getLogger(__name__)


SYSTEM_SETTINGS_KEY = 'system_settings'

DEFAULT_SYSTEM_SETTINGS = {
    'company_name': 'BioBox Indústria de Móveis',
    'company_email': 'contato@biobox.com.br',
    'company_phone': '(11) 4321-1234',
    'address': 'Rua Industrial, 123 - São Paulo, SP',
    'tax_id': '12.345.678/0001-90',
    'low_stock_threshold': 5,
    'monthly_revenue_target': 180000,
    'auto_backup': True,
    'backup_frequency': 'daily',
}


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def log_activity(request=None, action_type=None, entity_type=None, entity_id=None,
                 entity_name='', description='', metadata=None, user=None):
    """
    Create an activity feed entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action_type: create, update, delete or complete
        entity_type: order, customer, product, user, production or material
        entity_id: ID of the object (as string)
        entity_name: Human-readable name (order number, customer name)
        description: Sentence shown in the activity feed
        metadata: Extra data such as old/new status
        user: Optional user override (defaults to request.user if request provided)
    """
    try:
        actor = user
        if actor is None and request is not None and hasattr(request, 'user'):
            actor = request.user
        if actor is not None and not actor.is_authenticated:
            actor = None

        if not action_type or not entity_type or entity_id in (None, ''):
            logger.warning(
                f"Activity log skipped: missing required fields "
                f"(action_type={action_type}, entity_type={entity_type}, entity_id={entity_id})"
            )
            return None

        return ActivityLog.objects.create(
            user=actor,
            user_name=actor.display_name if actor else 'Sistema',
            action_type=action_type,
            entity_type=entity_type,
            entity_id=str(entity_id),
            entity_name=entity_name or '',
            description=description or '',
            metadata=metadata or {},
            ip_address=get_client_ip(request) if request else None,
        )
    except Exception as e:
        # Activity logging never breaks the main operation
        logger.error(f"Failed to create activity log: {str(e)}")
        return None


def get_json_setting(key, defaults):
    """Read a JSON Setting and merge it over ``defaults``"""
    merged = dict(defaults)
    setting = Setting.objects.filter(key=key).first()
    if not setting:
        return merged
    try:
        stored = json.loads(setting.value or '{}')
    except ValueError:
        logger.warning(f"Setting '{key}' does not contain valid JSON, using defaults")
        return merged
    if isinstance(stored, dict):
        for name, value in stored.items():
            if isinstance(value, dict) and isinstance(merged.get(name), dict):
                merged[name] = {**merged[name], **value}
            else:
                merged[name] = value
    return merged


def save_json_setting(key, defaults, changes, description=''):
    """Merge ``changes`` into the stored setting and persist it"""
    current = get_json_setting(key, defaults)
    for name, value in (changes or {}).items():
        if name not in defaults:
            continue
        if isinstance(value, dict) and isinstance(current.get(name), dict):
            current[name] = {**current[name], **value}
        else:
            current[name] = value
    Setting.objects.update_or_create(
        key=key,
        defaults={'value': json.dumps(current), 'description': description},
    )
    return current


def get_system_settings():
    return get_json_setting(SYSTEM_SETTINGS_KEY, DEFAULT_SYSTEM_SETTINGS)
