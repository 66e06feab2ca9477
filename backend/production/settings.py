"""Production settings document stored in the settings table"""
from backend.core.utils import get_json_setting, save_json_setting

PRODUCTION_SETTINGS_KEY = 'production_settings'

DEFAULT_PRODUCTION_SETTINGS = {
    'working_hours': {
        'start': '08:00',
        'end': '18:00',
        'lunch_break': 60,
        'short_breaks': 15,
    },
    'targets': {
        'daily_production': 12,
        'weekly_production': 60,
        'monthly_production': 240,
        'quality_target': 95,
    },
    'alerts': {
        'delayed_orders': True,
        'low_efficiency': True,
        'quality_issues': True,
        'threshold_efficiency': 80,
    },
    'automation': {
        'auto_assign_tasks': False,
        'auto_advance_stages': False,
        'notify_on_completion': True,
    },
}


def get_production_settings():
    return get_json_setting(PRODUCTION_SETTINGS_KEY, DEFAULT_PRODUCTION_SETTINGS)


def save_production_settings(changes):
    return save_json_setting(
        PRODUCTION_SETTINGS_KEY, DEFAULT_PRODUCTION_SETTINGS, changes,
        description='Configurações de produção',
    )
