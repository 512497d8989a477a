# backend/pc_core/appointments/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from pc_core.appointments.models import Appointment, AppointmentStatus

# "clinic" is accepted on input and normalised to hospital by the rules module.
TYPE_INPUT_CHOICES = ["home", "hospital", "clinic"]


class AppointmentSerializer(serializers.ModelSerializer):
    code = serializers.CharField(read_only=True)
    patient_name = serializers.CharField(source="patient.full_name", read_only=True)
    display_place = serializers.CharField(read_only=True)

    class Meta:
        model = Appointment
        fields = [
            "id",
            "code",
            "patient_id",
            "patient_name",
            "appointment_date",
            "start_time",
            "end_time",
            "appointment_type",
            "place",
            "hospital_address",
            "department",
            "display_place",
            "status",
            "note",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class _AppointmentInput(serializers.Serializer):
    patient_id = serializers.CharField(max_length=32)
    appointment_date = serializers.DateField()
    start_time = serializers.TimeField()
    end_time = serializers.TimeField()
    appointment_type = serializers.ChoiceField(choices=TYPE_INPUT_CHOICES, required=False, allow_null=True)
    place = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    hospital_address = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    department = serializers.CharField(max_length=128, required=False, allow_blank=True, allow_null=True)
    status = serializers.ChoiceField(choices=AppointmentStatus.choices, required=False)
    note = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def to_internal_value(self, data):
        # "hn" is accepted as an alias of patient_id
        if hasattr(data, "copy"):
            data = data.copy()
        if "hn" in data and "patient_id" not in data:
            data["patient_id"] = data["hn"]
        return super().to_internal_value(data)


class AppointmentCreateSerializer(_AppointmentInput):
    pass


class AppointmentUpdateSerializer(_AppointmentInput):
    """
    Partial update contract (PATCH). Only keys present in the body are merged.
    """

    def __init__(self, *args, **kwargs):
        kwargs["partial"] = True
        super().__init__(*args, **kwargs)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("At least one field is required.")
        return attrs


class AppointmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=AppointmentStatus.choices)
