from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("ingest", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="archiveversion",
            name="retired_online_copy_id",
            field=models.CharField(
                blank=True,
                help_text="Online copy handle taken away by the newest successor; "
                "given back when every successor was rolled back",
                max_length=255,
                null=True,
            ),
        ),
    ]
