from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('boms', '0002_bomitem_match_key'),
    ]

    operations = [
        migrations.RemoveConstraint(
            model_name='bomitem',
            name='uniq_bom_item_description',
        ),
        migrations.AddConstraint(
            model_name='bomitem',
            constraint=models.UniqueConstraint(fields=('bom', 'match_key'), name='uniq_bom_item_match_key'),
        ),
    ]
