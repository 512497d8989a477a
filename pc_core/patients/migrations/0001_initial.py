# backend/pc_core/patients/migrations/0001_initial.py
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Patient",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("hn", models.CharField(max_length=32, primary_key=True, serialize=False)),
                ("full_name", models.CharField(max_length=255)),
                ("phone", models.CharField(blank=True, max_length=32)),
                ("gender", models.CharField(blank=True, max_length=32)),
                ("date_of_birth", models.DateField(blank=True, null=True)),
            ],
            options={
                "db_table": "patients_patient",
                "indexes": [
                    models.Index(fields=["full_name"], name="patient_name_idx"),
                    models.Index(fields=["phone"], name="patient_phone_idx"),
                ],
            },
        ),
    ]
