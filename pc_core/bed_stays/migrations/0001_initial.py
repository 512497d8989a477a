# backend/pc_core/bed_stays/migrations/0001_initial.py
import django.contrib.postgres.constraints
import django.contrib.postgres.fields.ranges
import django.db.models.deletion
from django.db import migrations, models

import pc_core.common.db


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("common", "0001_btree_gist"),
        ("beds", "0001_initial"),
        ("patients", "0001_initial"),
        ("appointments", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="BedStay",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("start_at", models.DateTimeField(db_index=True)),
                ("end_at", models.DateTimeField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("reserved", "Reserved"),
                            ("occupied", "Occupied"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        max_length=16,
                    ),
                ),
                ("note", models.TextField(blank=True, default="")),
                (
                    "bed",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stays",
                        to="beds.bed",
                    ),
                ),
                (
                    "patient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bed_stays",
                        to="patients.patient",
                    ),
                ),
                (
                    "source_appointment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bed_stays",
                        to="appointments.appointment",
                    ),
                ),
            ],
            options={
                "db_table": "bed_stays_bed_stay",
                "indexes": [
                    models.Index(fields=["bed", "status"], name="bed_stay_bed_status_idx"),
                    models.Index(fields=["patient", "start_at"], name="bed_stay_patient_start_idx"),
                ],
                "constraints": [
                    django.contrib.postgres.constraints.ExclusionConstraint(
                        condition=models.Q(("status__in", ["reserved", "occupied"])),
                        expressions=[
                            ("bed", "="),
                            (
                                pc_core.common.db.TsTzRange(
                                    "start_at",
                                    "end_at",
                                    django.contrib.postgres.fields.ranges.RangeBoundary(),
                                ),
                                "&&",
                            ),
                        ],
                        name="bed_stay_no_overlap",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("end_at__isnull", True), ("end_at__gt", models.F("start_at")), _connector="OR"),
                        name="bed_stay_end_after_start",
                    ),
                ],
            },
        ),
    ]
