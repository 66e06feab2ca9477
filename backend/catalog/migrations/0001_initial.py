# Generated manually
import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('category', models.CharField(choices=[('bed', 'Bed'), ('mattress', 'Mattress'), ('pillow', 'Pillow'), ('protector', 'Protector'), ('accessory', 'Accessory')], default='bed', max_length=20)),
                ('sku', models.CharField(blank=True, max_length=100, unique=True)),
                ('barcode', models.CharField(blank=True, max_length=50, null=True, unique=True)),
                ('description', models.TextField(blank=True)),
                ('base_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('cost_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('margin', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Profit margin percentage over the base price', max_digits=7)),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive'), ('discontinued', 'Discontinued')], default='active', max_length=20)),
                ('images', models.JSONField(blank=True, default=list)),
                ('specifications', models.JSONField(blank=True, default=list, help_text='List of {name, options, required, price_modifiers}')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'products',
                'ordering': ['name'],
                'indexes': [
                    models.Index(fields=['sku'], name='idx_product_sku'),
                    models.Index(fields=['category', 'status'], name='idx_product_category_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ProductModel',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('price_modifier', models.DecimalField(decimal_places=3, default=Decimal('1.000'), max_digits=6)),
                ('sizes', models.JSONField(blank=True, default=list, help_text='List of {name, width, length, height, price_modifier}')),
                ('colors', models.JSONField(blank=True, default=list, help_text='List of {name, hex_code, price_modifier}')),
                ('fabrics', models.JSONField(blank=True, default=list, help_text='List of {name, type, price_modifier}')),
                ('stock_quantity', models.IntegerField(default=0)),
                ('minimum_stock', models.IntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='models', to='catalog.product')),
            ],
            options={
                'db_table': 'product_models',
                'ordering': ['product', 'name'],
            },
        ),
        migrations.CreateModel(
            name='RawMaterial',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('category', models.CharField(choices=[('wood', 'Wood'), ('foam', 'Foam'), ('fabric', 'Fabric'), ('hardware', 'Hardware'), ('other', 'Other')], default='other', max_length=20)),
                ('unit', models.CharField(choices=[('meters', 'Meters'), ('pieces', 'Pieces'), ('liters', 'Liters'), ('kg', 'Kilograms')], default='pieces', max_length=20)),
                ('quantity', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('minimum_stock', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=12, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('unit_cost', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('supplier', models.CharField(blank=True, max_length=255)),
                ('location', models.CharField(blank=True, max_length=255)),
                ('expiration_date', models.DateField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'raw_materials',
                'ordering': ['name'],
            },
        ),
    ]
