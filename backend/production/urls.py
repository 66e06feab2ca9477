from django.urls import path
from . import views

urlpatterns = [
    path('production/stages/', views.stage_list, name='production-stages'),
    path('production/orders/', views.production_orders, name='production-orders'),
    path('production/orders/<int:pk>/stages/', views.order_stages, name='production-order-stages'),
    path('production/lines/', views.line_list_create, name='production-line-list-create'),
    path('production/lines/<int:pk>/', views.line_detail, name='production-line-detail'),
    path('production/operators/', views.operator_list_create, name='production-operator-list-create'),
    path('production/operators/<int:pk>/', views.operator_detail, name='production-operator-detail'),
    path('production/tasks/', views.task_list_create, name='production-task-list-create'),
    path('production/tasks/<int:pk>/', views.task_detail, name='production-task-detail'),
    path('production/tasks/<int:pk>/<str:action>/', views.task_action, name='production-task-action'),
    path('production/issues/', views.issue_list_create, name='production-issue-list-create'),
    path('production/issues/<int:pk>/', views.issue_detail, name='production-issue-detail'),
    path('production/issues/<int:pk>/resolve/', views.issue_resolve, name='production-issue-resolve'),
    path('production/quality-checks/', views.quality_check_list_create, name='production-quality-checks'),
    path('production/settings/', views.production_settings, name='production-settings'),
]
