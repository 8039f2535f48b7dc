from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("live", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="sessionstate",
            name="offline_requested_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
    ]
