from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("reports", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="reportblob",
            name="error",
            field=models.TextField(blank=True),
        ),
    ]
