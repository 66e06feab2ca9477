from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Extended user model with role and permission strings"""
    ROLE_CHOICES = [
        ('admin', 'Administrator'),
        ('seller', 'Seller'),
        ('operator', 'Operator'),
    ]

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]

    phone = models.CharField(max_length=20, blank=True, null=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='seller')
    permissions = models.JSONField(default=list, blank=True, help_text="Permission ids such as 'orders-full' or 'orders:approve'")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    created_by = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='created_users')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def display_name(self):
        full_name = self.get_full_name()
        return full_name or self.username

    @property
    def is_admin_role(self):
        return self.role == 'admin' or self.is_superuser

    def save(self, *args, **kwargs):
        # status drives login access
        self.is_active = self.status == 'active'
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'users'


class Setting(models.Model):
    """System settings"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'settings'


class ActivityLog(models.Model):
    """Activity feed entries for user actions"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('complete', 'Complete'),
    ]

    ENTITY_CHOICES = [
        ('order', 'Order'),
        ('customer', 'Customer'),
        ('product', 'Product'),
        ('user', 'User'),
        ('production', 'Production'),
        ('material', 'Raw Material'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='activities')
    user_name = models.CharField(max_length=255, blank=True)
    action_type = models.CharField(max_length=20, choices=ACTION_CHOICES)
    entity_type = models.CharField(max_length=20, choices=ENTITY_CHOICES)
    entity_id = models.CharField(max_length=100)
    entity_name = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.action_type} {self.entity_type} {self.entity_id}"

    class Meta:
        db_table = 'activity_logs'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['-created_at'], name='idx_activity_created_at'),
            models.Index(fields=['entity_type'], name='idx_activity_entity_type'),
            models.Index(fields=['action_type'], name='idx_activity_action_type'),
        ]
