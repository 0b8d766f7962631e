import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("studios", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Membership",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("plan", models.CharField(choices=[("MONTHLY", "Monthly"), ("YEARLY", "Yearly")], max_length=10)),
                (
                    "status",
                    models.CharField(
                        choices=[("INACTIVE", "Inactive"), ("ACTIVE", "Active"), ("EXPIRED", "Expired")],
                        default="INACTIVE",
                        max_length=10,
                    ),
                ),
                ("start_date", models.DateTimeField(blank=True, null=True)),
                ("end_date", models.DateTimeField(blank=True, null=True)),
                ("payment_id", models.CharField(blank=True, db_index=True, max_length=255, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "studio",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="memberships",
                        to="studios.studio",
                    ),
                ),
            ],
            options={"ordering": ["-created_at", "id"]},
        ),
    ]
