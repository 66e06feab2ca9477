from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.shortcuts import get_object_or_404
from .models import Setting, ActivityLog
from .permissions import PERMISSION_CATALOG, IsAdminRole, module_access, require_permission
from .serializers import (
    UserSerializer, UserCreateSerializer,
    SettingSerializer, SystemSettingsSerializer, ActivityLogSerializer
)
from .utils import (
    DEFAULT_SYSTEM_SETTINGS, SYSTEM_SETTINGS_KEY,
    get_system_settings, save_json_setting, log_activity
)

User = get_user_model()


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['role'] = user.role
        token['permissions'] = list(user.permissions or [])
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Custom token refresh serializer that handles deleted users gracefully"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    """Custom token refresh view that handles deleted users gracefully"""
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """User registration endpoint (always creates a seller)"""
    data = request.data.copy()
    data['role'] = 'seller'
    data['status'] = 'active'
    data.pop('permissions', None)
    serializer = UserCreateSerializer(data=data)
    if serializer.is_valid():
        user = serializer.save()
        token = CustomTokenObtainPairSerializer.get_token(user)
        return Response({
            'user': UserSerializer(user).data,
            'access': str(token.access_token),
            'refresh': str(token),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_list_create(request):
    """List all users or create a new user"""
    if request.method == 'GET':
        users = User.objects.all().order_by('username')
        role = request.query_params.get('role', None)
        if role:
            users = users.filter(role=role)
        serializer = UserSerializer(users, many=True)
        return Response(serializer.data)
    else:
        serializer = UserCreateSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save(created_by=request.user)
            log_activity(request, 'create', 'user', user.id, user.display_name,
                         f'Usuário {user.display_name} criado')
            return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        serializer = UserSerializer(user)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = UserSerializer(user, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            password = request.data.get('password')
            if password:
                user.set_password(password)
                user.save(update_fields=['password'])
            log_activity(request, 'update', 'user', user.id, user.display_name,
                         f'Usuário {user.display_name} atualizado')
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if user.pk == request.user.pk:
            return Response({'error': 'You cannot delete your own account'}, status=status.HTTP_400_BAD_REQUEST)
        name = user.display_name
        user_id = user.id
        user.delete()
        log_activity(request, 'delete', 'user', user_id, name, f'Usuário {name} removido')
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get current user with role, permissions and section access flags"""
    user = request.user
    user_data = UserSerializer(user).data
    user_data.update(module_access(user))
    return Response(user_data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def permission_list(request):
    """List the permission catalog"""
    return Response(PERMISSION_CATALOG)


# Setting views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def setting_list_create(request):
    """List all settings or create a new setting"""
    if request.method == 'GET':
        settings = Setting.objects.all().order_by('key')
        serializer = SettingSerializer(settings, many=True)
        return Response(serializer.data)
    else:
        serializer = SettingSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def setting_detail(request, pk):
    """Retrieve, update or delete a setting"""
    setting = get_object_or_404(Setting, pk=pk)

    if request.method == 'GET':
        serializer = SettingSerializer(setting)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SettingSerializer(setting, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        setting.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def system_settings(request):
    """Company and system-wide settings"""
    if request.method == 'GET':
        denied = require_permission(request, 'settings', 'view')
        if denied:
            return denied
        return Response(get_system_settings())

    denied = require_permission(request, 'settings', 'edit')
    if denied:
        return denied
    serializer = SystemSettingsSerializer(data=request.data, partial=True)
    if serializer.is_valid():
        updated = save_json_setting(
            SYSTEM_SETTINGS_KEY, DEFAULT_SYSTEM_SETTINGS, serializer.validated_data,
            description='Company and system settings'
        )
        return Response(updated)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# Activity views (read-only)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def activity_list(request):
    """List activity entries with filtering"""
    queryset = ActivityLog.objects.all()

    if not (request.user.is_superuser or request.user.role == 'admin'):
        queryset = queryset.filter(user=request.user)

    entity_type = request.query_params.get('entity_type', None)
    if entity_type:
        queryset = queryset.filter(entity_type=entity_type)

    action_type = request.query_params.get('action_type', None)
    if action_type:
        queryset = queryset.filter(action_type=action_type)

    user_id = request.query_params.get('user', None)
    if user_id:
        queryset = queryset.filter(user_id=user_id)

    entity_id = request.query_params.get('entity_id', None)
    if entity_id:
        queryset = queryset.filter(entity_id=entity_id)

    try:
        limit = int(request.query_params.get('limit', 50))
    except ValueError:
        return Response({'error': 'limit must be an integer'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = ActivityLogSerializer(queryset.order_by('-created_at', '-id')[:limit], many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def activity_recent(request):
    """Latest entries for the dashboard activity feed"""
    queryset = ActivityLog.objects.order_by('-created_at', '-id')[:20]
    return Response(ActivityLogSerializer(queryset, many=True).data)
