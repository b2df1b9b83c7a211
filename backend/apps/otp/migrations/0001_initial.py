import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="OTPRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "email",
                    models.EmailField(
                        db_index=True,
                        help_text="Normalized (trimmed, lower-cased) email address",
                        max_length=254,
                    ),
                ),
                ("otp_hash", models.CharField(help_text="SHA-256 hex digest of code + salt", max_length=64)),
                ("salt", models.CharField(help_text="Per-request random salt (hex)", max_length=32)),
                ("used", models.BooleanField(default=False)),
                (
                    "attempts",
                    models.PositiveSmallIntegerField(default=0, help_text="Number of wrong-code submissions"),
                ),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("expires_at", models.DateTimeField()),
                ("verified_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["email", "used", "-created_at"], name="otp_email_active_idx"),
                ],
            },
        ),
    ]
