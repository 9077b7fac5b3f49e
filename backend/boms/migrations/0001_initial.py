import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Job',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('job_number', models.CharField(max_length=50, unique=True)),
                ('job_name', models.CharField(blank=True, max_length=200)),
                ('project_manager', models.CharField(blank=True, max_length=200)),
                ('primary_field_leader', models.CharField(blank=True, max_length=200)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('work_category', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='jobs', to='catalog.category')),
            ],
            options={
                'db_table': 'jobs',
                'ordering': ['job_number'],
            },
        ),
        migrations.CreateModel(
            name='Bom',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('job_number', models.CharField(db_index=True, max_length=50)),
                ('job_name', models.CharField(blank=True, max_length=200)),
                ('project_manager', models.CharField(blank=True, max_length=200)),
                ('primary_field_leader', models.CharField(blank=True, max_length=200)),
                ('type', models.CharField(choices=[('order', 'Order BOM'), ('design', 'Design BOM')], default='order', max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('job', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='boms', to='boms.job')),
                ('work_category', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='boms', to='catalog.category')),
            ],
            options={
                'db_table': 'boms',
                'ordering': ['created_at', 'id'],
                'indexes': [models.Index(fields=['job_number', 'created_at'], name='idx_bom_job_created')],
            },
        ),
        migrations.CreateModel(
            name='BomItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('description', models.CharField(max_length=500)),
                ('order_bom_quantity', models.PositiveIntegerField(default=0)),
                ('design_bom_quantity', models.PositiveIntegerField(default=0)),
                ('on_hand_quantity', models.PositiveIntegerField(default=0)),
                ('shipped_quantity', models.PositiveIntegerField(default=0)),
                ('shelf_locations', models.JSONField(blank=True, default=list)),
                ('last_updated', models.DateTimeField(default=django.utils.timezone.now)),
                ('bom', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='boms.bom')),
            ],
            options={
                'db_table': 'bom_items',
                'ordering': ['id'],
                'constraints': [models.UniqueConstraint(fields=('bom', 'description'), name='uniq_bom_item_description')],
            },
        ),
    ]
