from django.db import migrations


def populate_configuration(apps, schema_editor):
    Configuration = apps.get_model("configuration", "Configuration")

    initial_data = [
        {
            "key": "retire_superseded_online_copy",
            "data_type": "boolean",
            "value": "true",
            "description": "When a new version of a package is imported, drop "
            "the reference to the online copy of the version it replaces. The "
            "offline copy of the old version is kept either way.",
        },
    ]

    for entry in initial_data:
        Configuration.objects.update_or_create(key=entry["key"], defaults=entry)


def revert_populate_configuration(apps, schema_editor):
    # Nothing to restore, but the migration has to be reversible
    pass


class Migration(migrations.Migration):
    dependencies = [
        ("configuration", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(populate_configuration, revert_populate_configuration),
    ]
