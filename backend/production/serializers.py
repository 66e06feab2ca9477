from rest_framework import serializers
from .models import OrderStage, ProductionLine, Operator, ProductionTask, ProductionIssue, QualityCheck
from .stages import STAGES_BY_ID, STAGE_IDS, STAGE_ACTIONS


class OrderStageSerializer(serializers.ModelSerializer):
    stage_name = serializers.SerializerMethodField()
    estimated_minutes = serializers.SerializerMethodField()

    class Meta:
        model = OrderStage
        fields = ['id', 'order', 'stage_id', 'stage_name', 'estimated_minutes', 'status',
                  'started_at', 'completed_at', 'assigned_operator', 'notes', 'updated_at']
        read_only_fields = fields

    def get_stage_name(self, obj):
        return STAGES_BY_ID[obj.stage_id]['name']

    def get_estimated_minutes(self, obj):
        return STAGES_BY_ID[obj.stage_id]['estimated_minutes']


class StageUpdateSerializer(serializers.Serializer):
    stage_id = serializers.ChoiceField(choices=STAGE_IDS)
    status = serializers.ChoiceField(choices=['pending', 'in_progress', 'completed'], required=False)
    action = serializers.ChoiceField(choices=list(STAGE_ACTIONS), required=False)
    assigned_operator = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if 'status' in attrs and 'action' in attrs:
            raise serializers.ValidationError('Send either status or action, not both')
        return attrs


class OperatorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Operator
        fields = ['id', 'name', 'user', 'skills', 'status', 'shift', 'efficiency', 'current_task',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_skills(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError('Skills must be a list of stage ids')
        unknown = [skill for skill in value if skill not in STAGES_BY_ID]
        if unknown:
            raise serializers.ValidationError(f"Unknown stages: {', '.join(map(str, unknown))}")
        return value


class ProductionLineSerializer(serializers.ModelSerializer):
    current_order_number = serializers.CharField(source='current_order.order_number', read_only=True, default=None)
    operator_name = serializers.CharField(source='operator.name', read_only=True, default=None)
    target_percentage = serializers.IntegerField(read_only=True)

    class Meta:
        model = ProductionLine
        fields = ['id', 'name', 'status', 'current_order', 'current_order_number', 'operator', 'operator_name',
                  'efficiency', 'daily_target', 'daily_produced', 'target_percentage', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class ProductionTaskSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True)
    customer_name = serializers.CharField(source='order.customer_name', read_only=True)
    operator_name = serializers.CharField(source='operator.name', read_only=True, default=None)
    stage_name = serializers.SerializerMethodField()

    class Meta:
        model = ProductionTask
        fields = ['id', 'order', 'order_number', 'customer_name', 'stage_id', 'stage_name', 'status', 'priority',
                  'operator', 'operator_name', 'start_time', 'estimated_completion_time',
                  'actual_completion_time', 'progress', 'notes', 'created_at', 'updated_at']
        read_only_fields = ['start_time', 'actual_completion_time', 'created_at', 'updated_at']

    def get_stage_name(self, obj):
        return STAGES_BY_ID[obj.stage_id]['name']

    def validate_order(self, value):
        if value.status in ('delivered', 'cancelled'):
            raise serializers.ValidationError(f'Cannot add tasks to a {value.status} order')
        return value


class ProductionIssueSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True)

    class Meta:
        model = ProductionIssue
        fields = ['id', 'task', 'order', 'order_number', 'issue_type', 'severity', 'description',
                  'reported_by', 'status', 'resolved_at', 'created_at']
        read_only_fields = ['resolved_at', 'created_at']

    def validate(self, attrs):
        task = attrs.get('task')
        order = attrs.get('order', getattr(self.instance, 'order', None))
        if task and order and task.order_id != order.id:
            raise serializers.ValidationError({'task': 'Task belongs to a different order'})
        return attrs


class QualityCheckSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True)

    class Meta:
        model = QualityCheck
        fields = ['id', 'order', 'order_number', 'stage_id', 'checked_by', 'passed', 'score', 'notes', 'created_at']
        read_only_fields = ['created_at']


class ProductionSettingsSerializer(serializers.Serializer):
    working_hours = serializers.DictField(required=False)
    targets = serializers.DictField(required=False)
    alerts = serializers.DictField(required=False)
    automation = serializers.DictField(required=False)

    def validate_targets(self, value):
        for key, target in value.items():
            if not isinstance(target, (int, float)) or target < 0:
                raise serializers.ValidationError(f'{key} must be a non-negative number')
        return value
