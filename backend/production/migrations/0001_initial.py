# Generated manually
import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models

STAGE_CHOICES = [
    ('cutting_sewing', 'Corte e Costura'),
    ('carpentry', 'Marcenaria'),
    ('upholstery', 'Tapeçaria'),
    ('assembly', 'Montagem'),
    ('packaging', 'Embalagem'),
    ('delivery', 'Entrega'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('orders', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='OrderStage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('stage_id', models.CharField(choices=STAGE_CHOICES, max_length=30)),
                ('status', models.CharField(choices=[('pending', 'Pendente'), ('in_progress', 'Em Andamento'), ('completed', 'Concluído')], default='pending', max_length=20)),
                ('started_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('assigned_operator', models.CharField(blank=True, max_length=255)),
                ('notes', models.TextField(blank=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stages', to='orders.order')),
            ],
            options={
                'db_table': 'order_stages',
                'ordering': ['order', 'id'],
                'constraints': [
                    models.UniqueConstraint(fields=('order', 'stage_id'), name='uniq_order_stage'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Operator',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('skills', models.JSONField(blank=True, default=list)),
                ('status', models.CharField(choices=[('available', 'Disponível'), ('busy', 'Ocupado'), ('break', 'Intervalo'), ('absent', 'Ausente')], default='available', max_length=20)),
                ('shift', models.CharField(choices=[('morning', 'Manhã'), ('afternoon', 'Tarde'), ('night', 'Noite')], default='morning', max_length=20)),
                ('efficiency', models.DecimalField(decimal_places=2, default=Decimal('100.00'), max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('current_task', models.CharField(blank=True, max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='operator_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'operators',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='ProductionLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255, unique=True)),
                ('status', models.CharField(choices=[('active', 'Ativa'), ('inactive', 'Inativa'), ('maintenance', 'Manutenção')], default='active', max_length=20)),
                ('efficiency', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=5)),
                ('daily_target', models.PositiveIntegerField(default=0)),
                ('daily_produced', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('current_order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='production_lines', to='orders.order')),
                ('operator', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='production_lines', to='production.operator')),
            ],
            options={
                'db_table': 'production_lines',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='ProductionTask',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('stage_id', models.CharField(choices=STAGE_CHOICES, max_length=30)),
                ('status', models.CharField(choices=[('pending', 'Pendente'), ('in_progress', 'Em Andamento'), ('completed', 'Concluída'), ('paused', 'Pausada'), ('blocked', 'Bloqueada')], default='pending', max_length=20)),
                ('priority', models.CharField(choices=[('low', 'Baixa'), ('medium', 'Média'), ('high', 'Alta'), ('urgent', 'Urgente')], default='medium', max_length=20)),
                ('start_time', models.DateTimeField(blank=True, null=True)),
                ('estimated_completion_time', models.DateTimeField(blank=True, null=True)),
                ('actual_completion_time', models.DateTimeField(blank=True, null=True)),
                ('progress', models.PositiveSmallIntegerField(default=0, validators=[django.core.validators.MaxValueValidator(100)])),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('operator', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='tasks', to='production.operator')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tasks', to='orders.order')),
            ],
            options={
                'db_table': 'production_tasks',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status'], name='idx_task_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ProductionIssue',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('issue_type', models.CharField(choices=[('quality', 'Qualidade'), ('material', 'Material'), ('equipment', 'Equipamento'), ('operator', 'Operador'), ('other', 'Outro')], default='other', max_length=20)),
                ('severity', models.CharField(choices=[('low', 'Baixa'), ('medium', 'Média'), ('high', 'Alta'), ('critical', 'Crítica')], default='medium', max_length=20)),
                ('description', models.TextField()),
                ('reported_by', models.CharField(blank=True, max_length=255)),
                ('status', models.CharField(choices=[('open', 'Aberto'), ('investigating', 'Investigando'), ('resolved', 'Resolvido')], default='open', max_length=20)),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='issues', to='orders.order')),
                ('task', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='issues', to='production.productiontask')),
            ],
            options={
                'db_table': 'production_issues',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='QualityCheck',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('stage_id', models.CharField(choices=STAGE_CHOICES, max_length=30)),
                ('checked_by', models.CharField(blank=True, max_length=255)),
                ('passed', models.BooleanField(default=True)),
                ('score', models.PositiveSmallIntegerField(default=100, validators=[django.core.validators.MaxValueValidator(100)])),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='quality_checks', to='orders.order')),
            ],
            options={
                'db_table': 'quality_checks',
                'ordering': ['-created_at'],
            },
        ),
    ]
