# backend/pc_core/beds/migrations/0001_initial.py
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Ward",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=128, unique=True)),
            ],
            options={
                "db_table": "beds_ward",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Bed",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("code", models.CharField(max_length=32, unique=True)),
                (
                    "care_side",
                    models.CharField(
                        choices=[("LTC", "Long-term care"), ("PC", "Palliative care")],
                        db_index=True,
                        max_length=8,
                    ),
                ),
                ("is_active", models.BooleanField(db_index=True, default=True)),
                ("retired_at", models.DateTimeField(blank=True, null=True)),
                ("note", models.TextField(blank=True, default="")),
                (
                    "ward",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="beds",
                        to="beds.ward",
                    ),
                ),
            ],
            options={
                "db_table": "beds_bed",
                "indexes": [models.Index(fields=["care_side", "is_active"], name="bed_side_active_idx")],
            },
        ),
    ]
