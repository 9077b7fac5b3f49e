import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Container',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('job_number', models.CharField(blank=True, db_index=True, max_length=50)),
                ('job_name', models.CharField(blank=True, max_length=200)),
                ('container_type', models.CharField(choices=[('pallet', 'Pallet'), ('box', 'Box'), ('cart', 'Cart'), ('other', 'Other')], max_length=10)),
                ('shelf_location', models.CharField(blank=True, db_index=True, max_length=100, null=True)),
                ('receipt_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('notes', models.TextField(blank=True)),
                ('image_url', models.URLField(blank=True, max_length=1000)),
                ('received_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='received_containers', to=settings.AUTH_USER_MODEL)),
                ('work_category', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='containers', to='catalog.category')),
            ],
            options={
                'db_table': 'containers',
                'ordering': ['-receipt_date', '-id'],
            },
        ),
        migrations.CreateModel(
            name='ContainerItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('description', models.CharField(max_length=500)),
                ('quantity', models.PositiveIntegerField()),
                ('container', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='containers.container')),
            ],
            options={
                'db_table': 'container_items',
                'ordering': ['id'],
            },
        ),
    ]
