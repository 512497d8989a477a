# backend/pc_core/bed_stays/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from pc_core.appointments.models import format_code
from pc_core.bed_stays.models import BedStay


class BedStaySerializer(serializers.ModelSerializer):
    bed_code = serializers.CharField(source="bed.code", read_only=True)
    care_side = serializers.CharField(source="bed.care_side", read_only=True)
    patient_name = serializers.CharField(source="patient.full_name", read_only=True)
    source_appointment_code = serializers.SerializerMethodField()

    class Meta:
        model = BedStay
        fields = [
            "id",
            "bed_id",
            "bed_code",
            "care_side",
            "patient_id",
            "patient_name",
            "start_at",
            "end_at",
            "status",
            "note",
            "source_appointment_id",
            "source_appointment_code",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_source_appointment_code(self, obj) -> str | None:
        return format_code(obj.source_appointment_id) if obj.source_appointment_id else None


class OccupySerializer(serializers.Serializer):
    bed_id = serializers.IntegerField()
    patient_id = serializers.CharField(max_length=32)
    start_at = serializers.DateTimeField(required=False, allow_null=True)
    end_at = serializers.DateTimeField(required=False, allow_null=True)
    note = serializers.CharField(required=False, allow_blank=True, default="")
    source_appointment_id = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class EndStaySerializer(serializers.Serializer):
    at = serializers.DateTimeField(required=False, allow_null=True)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class TransferSerializer(serializers.Serializer):
    to_bed_id = serializers.IntegerField()
    at = serializers.DateTimeField(required=False, allow_null=True)
    note = serializers.CharField(required=False, allow_blank=True, default="")


class HistoryQuerySerializer(serializers.Serializer):
    patient = serializers.CharField(required=False)
    bed = serializers.IntegerField(required=False)

    def validate(self, attrs):
        if bool(attrs.get("patient")) == bool(attrs.get("bed")):
            raise serializers.ValidationError("Provide exactly one of patient or bed.")
        return attrs
