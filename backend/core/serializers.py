from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, Setting, ActivityLog
from .permissions import ROLE_DEFAULT_PERMISSIONS, default_permissions_for_role


class UserSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source='display_name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'name', 'phone', 'role',
                  'permissions', 'status', 'is_active', 'is_staff', 'is_superuser', 'last_login',
                  'created_by', 'created_at', 'updated_at']
        read_only_fields = ['is_active', 'last_login', 'created_by', 'created_at', 'updated_at']

    def validate_permissions(self, value):
        if not isinstance(value, list) or not all(isinstance(p, str) for p in value):
            raise serializers.ValidationError('Permissions must be a list of strings')
        return value


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)
    permissions = serializers.ListField(child=serializers.CharField(), required=False)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'password_confirm', 'first_name', 'last_name',
                  'phone', 'role', 'status', 'permissions']

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        if attrs.get('role', 'seller') not in ROLE_DEFAULT_PERMISSIONS:
            raise serializers.ValidationError({"role": "Unknown role"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        if not validated_data.get('permissions'):
            validated_data['permissions'] = default_permissions_for_role(validated_data.get('role', 'seller'))
        user = User(**validated_data)
        user.set_password(password)
        user.save()
        return user


class SettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Setting
        fields = ['id', 'key', 'value', 'description', 'updated_at']


class SystemSettingsSerializer(serializers.Serializer):
    company_name = serializers.CharField(required=False, allow_blank=True)
    company_email = serializers.EmailField(required=False, allow_blank=True)
    company_phone = serializers.CharField(required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    tax_id = serializers.CharField(required=False, allow_blank=True)
    low_stock_threshold = serializers.IntegerField(required=False, min_value=0)
    monthly_revenue_target = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, min_value=0, coerce_to_string=False)
    auto_backup = serializers.BooleanField(required=False)
    backup_frequency = serializers.ChoiceField(choices=['daily', 'weekly', 'monthly'], required=False)

    def validate_monthly_revenue_target(self, value):
        return float(value)


class ActivityLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = ActivityLog
        fields = ['id', 'user', 'user_name', 'action_type', 'entity_type', 'entity_id', 'entity_name',
                  'description', 'metadata', 'ip_address', 'created_at']
