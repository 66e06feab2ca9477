from django.contrib import admin
from .models import OrderStage, ProductionLine, Operator, ProductionTask, ProductionIssue, QualityCheck


@admin.register(OrderStage)
class OrderStageAdmin(admin.ModelAdmin):
    list_display = ['order', 'stage_id', 'status', 'assigned_operator', 'started_at', 'completed_at']
    list_filter = ['stage_id', 'status']
    search_fields = ['order__order_number', 'assigned_operator']


@admin.register(ProductionLine)
class ProductionLineAdmin(admin.ModelAdmin):
    list_display = ['name', 'status', 'current_order', 'operator', 'efficiency', 'daily_target', 'daily_produced']
    list_filter = ['status']


@admin.register(Operator)
class OperatorAdmin(admin.ModelAdmin):
    list_display = ['name', 'status', 'shift', 'efficiency', 'current_task']
    list_filter = ['status', 'shift']
    search_fields = ['name']


@admin.register(ProductionTask)
class ProductionTaskAdmin(admin.ModelAdmin):
    list_display = ['order', 'stage_id', 'status', 'priority', 'operator', 'progress', 'start_time']
    list_filter = ['status', 'priority', 'stage_id']
    search_fields = ['order__order_number']


@admin.register(ProductionIssue)
class ProductionIssueAdmin(admin.ModelAdmin):
    list_display = ['order', 'issue_type', 'severity', 'status', 'reported_by', 'created_at']
    list_filter = ['issue_type', 'severity', 'status']


@admin.register(QualityCheck)
class QualityCheckAdmin(admin.ModelAdmin):
    list_display = ['order', 'stage_id', 'passed', 'score', 'checked_by', 'created_at']
    list_filter = ['passed', 'stage_id']
