from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, Setting, ActivityLog


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'email', 'first_name', 'last_name', 'role', 'status', 'date_joined']
    list_filter = ['role', 'status', 'is_superuser', 'date_joined']
    search_fields = ['username', 'email', 'first_name', 'last_name']
    ordering = ['username']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Access', {'fields': ('phone', 'role', 'permissions', 'status')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Access', {'fields': ('phone', 'role', 'status')}),
    )


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ['key', 'value', 'updated_at']
    search_fields = ['key', 'description']
    ordering = ['key']
    readonly_fields = ['updated_at']


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ['user_name', 'action_type', 'entity_type', 'entity_name', 'ip_address', 'created_at']
    list_filter = ['action_type', 'entity_type', 'created_at']
    search_fields = ['user_name', 'entity_name', 'entity_id', 'description']
    ordering = ['-created_at']
    readonly_fields = ['user', 'user_name', 'action_type', 'entity_type', 'entity_id', 'entity_name',
                       'description', 'metadata', 'ip_address', 'created_at']
