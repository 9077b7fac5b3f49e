from django.db import migrations, models


def fill_match_keys(apps, schema_editor):
    BomItem = apps.get_model('boms', 'BomItem')
    rows = list(BomItem.objects.all().only('id', 'description'))
    for item in rows:
        item.match_key = ' '.join((item.description or '').split()).casefold()
    BomItem.objects.bulk_update(rows, ['match_key'], batch_size=500)


class Migration(migrations.Migration):

    dependencies = [
        ('boms', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='bomitem',
            name='match_key',
            field=models.CharField(blank=True, default='', editable=False, max_length=500),
            preserve_default=False,
        ),
        migrations.RunPython(fill_match_keys, migrations.RunPython.noop),
    ]
