# Seed the default staff role catalog.
# Requires: staff_roles table (created by 0001_initial).

from django.db import migrations

DEFAULT_ROLES = [
    ("PM", "專案經理"),
    ("PPM", "PPM"),
    ("PMO", "PMO"),
    ("PD", "PD"),
    ("CREW", "CREW"),
]


def seed_staff_roles(apps, schema_editor):
    """Insert the default roles; existing codes are left untouched."""
    StaffRole = apps.get_model("projects", "StaffRole")
    for code, name in DEFAULT_ROLES:
        StaffRole.objects.get_or_create(code=code, defaults={"name": name})


def remove_staff_roles(apps, schema_editor):
    StaffRole = apps.get_model("projects", "StaffRole")
    StaffRole.objects.filter(code__in=[code for code, _ in DEFAULT_ROLES]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("projects", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_staff_roles, remove_staff_roles),
    ]
