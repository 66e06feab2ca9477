from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register, user_me,
    user_list_create, user_detail, permission_list,
    setting_list_create, setting_detail, system_settings,
    activity_list, activity_recent
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),

    # User endpoints
    path('users/', user_list_create, name='user-list-create'),
    path('users/<int:pk>/', user_detail, name='user-detail'),
    path('permissions/', permission_list, name='permission-list'),

    # Setting endpoints
    path('settings/', setting_list_create, name='setting-list-create'),
    path('settings/system/', system_settings, name='system-settings'),
    path('settings/<int:pk>/', setting_detail, name='setting-detail'),

    # Activity endpoints
    path('activities/', activity_list, name='activity-list'),
    path('activities/recent/', activity_recent, name='activity-recent'),
]
