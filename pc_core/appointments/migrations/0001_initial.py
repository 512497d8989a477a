# backend/pc_core/appointments/migrations/0001_initial.py
import django.contrib.postgres.constraints
import django.contrib.postgres.fields.ranges
import django.db.models.deletion
from django.db import migrations, models

import pc_core.common.db


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("common", "0001_btree_gist"),
        ("patients", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Appointment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("appointment_date", models.DateField(db_index=True)),
                ("start_time", models.TimeField()),
                ("end_time", models.TimeField()),
                (
                    "appointment_type",
                    models.CharField(
                        choices=[("home", "Home visit"), ("hospital", "Hospital")],
                        db_index=True,
                        max_length=16,
                    ),
                ),
                ("place", models.CharField(blank=True, default="", max_length=255)),
                ("hospital_address", models.CharField(blank=True, max_length=255, null=True)),
                ("department", models.CharField(blank=True, max_length=128, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("done", "Done"), ("cancelled", "Cancelled")],
                        db_index=True,
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("note", models.TextField(blank=True, default="")),
                ("window_start", models.DateTimeField(editable=False)),
                ("window_end", models.DateTimeField(editable=False)),
                (
                    "patient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="appointments",
                        to="patients.patient",
                    ),
                ),
            ],
            options={
                "db_table": "appointments_appointment",
                "indexes": [
                    models.Index(fields=["patient", "appointment_date"], name="appt_patient_date_idx"),
                    models.Index(fields=["status", "appointment_date", "start_time"], name="appt_status_date_idx"),
                ],
                "constraints": [
                    django.contrib.postgres.constraints.ExclusionConstraint(
                        condition=models.Q(("status", "cancelled"), _negated=True),
                        expressions=[
                            ("patient", "="),
                            (
                                pc_core.common.db.TsTzRange(
                                    "window_start",
                                    "window_end",
                                    django.contrib.postgres.fields.ranges.RangeBoundary(),
                                ),
                                "&&",
                            ),
                        ],
                        name="appointment_no_overlap",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("start_time__lt", models.F("end_time"))),
                        name="appointment_start_before_end",
                    ),
                ],
            },
        ),
    ]
