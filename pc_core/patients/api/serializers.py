# backend/pc_core/patients/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from pc_core.patients.models import Patient


class PatientCreateSerializer(serializers.Serializer):
    hn = serializers.CharField(max_length=32)
    full_name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    gender = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    date_of_birth = serializers.DateField(required=False, allow_null=True)


class PatientSerializer(serializers.ModelSerializer):
    class Meta:
        model = Patient
        fields = [
            "hn",
            "full_name",
            "phone",
            "gender",
            "date_of_birth",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
