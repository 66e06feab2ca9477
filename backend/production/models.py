from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from decimal import Decimal
from backend.core.models import User
from backend.orders.models import Order


STAGE_CHOICES = [
    ('cutting_sewing', 'Corte e Costura'),
    ('carpentry', 'Marcenaria'),
    ('upholstery', 'Tapeçaria'),
    ('assembly', 'Montagem'),
    ('packaging', 'Embalagem'),
    ('delivery', 'Entrega'),
]


class OrderStage(models.Model):
    """Progress of one order through one production stage"""
    STATUS_CHOICES = [
        ('pending', 'Pendente'),
        ('in_progress', 'Em Andamento'),
        ('completed', 'Concluído'),
    ]

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='stages')
    stage_id = models.CharField(max_length=30, choices=STAGE_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    assigned_operator = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.order.order_number} - {self.get_stage_id_display()}"

    class Meta:
        db_table = 'order_stages'
        ordering = ['order', 'id']
        constraints = [
            models.UniqueConstraint(fields=['order', 'stage_id'], name='uniq_order_stage'),
        ]


class Operator(models.Model):
    """Shop floor worker"""
    STATUS_CHOICES = [
        ('available', 'Disponível'),
        ('busy', 'Ocupado'),
        ('break', 'Intervalo'),
        ('absent', 'Ausente'),
    ]

    SHIFT_CHOICES = [
        ('morning', 'Manhã'),
        ('afternoon', 'Tarde'),
        ('night', 'Noite'),
    ]

    name = models.CharField(max_length=255)
    user = models.OneToOneField(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='operator_profile')
    skills = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='available')
    shift = models.CharField(max_length=20, choices=SHIFT_CHOICES, default='morning')
    efficiency = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('100.00'),
        validators=[MinValueValidator(Decimal('0'))]
    )
    current_task = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'operators'
        ordering = ['name']


class ProductionLine(models.Model):
    STATUS_CHOICES = [
        ('active', 'Ativa'),
        ('inactive', 'Inativa'),
        ('maintenance', 'Manutenção'),
    ]

    name = models.CharField(max_length=255, unique=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    current_order = models.ForeignKey(Order, on_delete=models.SET_NULL, null=True, blank=True, related_name='production_lines')
    operator = models.ForeignKey(Operator, on_delete=models.SET_NULL, null=True, blank=True, related_name='production_lines')
    efficiency = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    daily_target = models.PositiveIntegerField(default=0)
    daily_produced = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def target_percentage(self):
        if not self.daily_target:
            return 0
        return round(self.daily_produced / self.daily_target * 100)

    class Meta:
        db_table = 'production_lines'
        ordering = ['name']


class ProductionTask(models.Model):
    """Unit of shop floor work: one stage of one order assigned to an operator"""
    STATUS_CHOICES = [
        ('pending', 'Pendente'),
        ('in_progress', 'Em Andamento'),
        ('completed', 'Concluída'),
        ('paused', 'Pausada'),
        ('blocked', 'Bloqueada'),
    ]

    PRIORITY_CHOICES = [
        ('low', 'Baixa'),
        ('medium', 'Média'),
        ('high', 'Alta'),
        ('urgent', 'Urgente'),
    ]

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='tasks')
    stage_id = models.CharField(max_length=30, choices=STAGE_CHOICES)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    priority = models.CharField(max_length=20, choices=PRIORITY_CHOICES, default='medium')
    operator = models.ForeignKey(Operator, on_delete=models.SET_NULL, null=True, blank=True, related_name='tasks')
    start_time = models.DateTimeField(null=True, blank=True)
    estimated_completion_time = models.DateTimeField(null=True, blank=True)
    actual_completion_time = models.DateTimeField(null=True, blank=True)
    progress = models.PositiveSmallIntegerField(default=0, validators=[MaxValueValidator(100)])
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.order.order_number} - {self.get_stage_id_display()}"

    class Meta:
        db_table = 'production_tasks'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='idx_task_status'),
        ]


class ProductionIssue(models.Model):
    TYPE_CHOICES = [
        ('quality', 'Qualidade'),
        ('material', 'Material'),
        ('equipment', 'Equipamento'),
        ('operator', 'Operador'),
        ('other', 'Outro'),
    ]

    SEVERITY_CHOICES = [
        ('low', 'Baixa'),
        ('medium', 'Média'),
        ('high', 'Alta'),
        ('critical', 'Crítica'),
    ]

    STATUS_CHOICES = [
        ('open', 'Aberto'),
        ('investigating', 'Investigando'),
        ('resolved', 'Resolvido'),
    ]

    task = models.ForeignKey(ProductionTask, on_delete=models.SET_NULL, null=True, blank=True, related_name='issues')
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='issues')
    issue_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='other')
    severity = models.CharField(max_length=20, choices=SEVERITY_CHOICES, default='medium')
    description = models.TextField()
    reported_by = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='open')
    resolved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.get_issue_type_display()} - {self.order.order_number}"

    class Meta:
        db_table = 'production_issues'
        ordering = ['-created_at']


class QualityCheck(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='quality_checks')
    stage_id = models.CharField(max_length=30, choices=STAGE_CHOICES)
    checked_by = models.CharField(max_length=255, blank=True)
    passed = models.BooleanField(default=True)
    score = models.PositiveSmallIntegerField(default=100, validators=[MaxValueValidator(100)])
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.order.order_number} - {self.stage_id} ({'ok' if self.passed else 'falhou'})"

    class Meta:
        db_table = 'quality_checks'
        ordering = ['-created_at']
