# backend/pc_core/beds/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from pc_core.beds.models import Bed, CareSide


class BedSerializer(serializers.ModelSerializer):
    ward_name = serializers.CharField(source="ward.name", read_only=True, default=None)

    class Meta:
        model = Bed
        fields = [
            "id",
            "code",
            "care_side",
            "ward_id",
            "ward_name",
            "is_active",
            "retired_at",
            "note",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BedCreateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=32)
    care_side = serializers.ChoiceField(choices=CareSide.choices)
    ward_id = serializers.IntegerField(required=False, allow_null=True)
    note = serializers.CharField(required=False, allow_blank=True, default="")


class BedListQuerySerializer(serializers.Serializer):
    care_side = serializers.ChoiceField(choices=CareSide.choices, required=False)
    ward_id = serializers.IntegerField(required=False)
    active_only = serializers.BooleanField(required=False, default=True)


class BedAvailabilityQuerySerializer(serializers.Serializer):
    """?from=&to= are mapped onto start/end by the view."""
    start = serializers.DateTimeField()
    end = serializers.DateTimeField(required=False, allow_null=True)
    care_side = serializers.ChoiceField(choices=CareSide.choices, required=False)
    ward_id = serializers.IntegerField(required=False)

    def validate(self, attrs):
        end = attrs.get("end")
        if end is not None and end <= attrs["start"]:
            raise serializers.ValidationError({"end": "Must be after start."})
        return attrs


class BedReconcileSerializer(serializers.Serializer):
    care_side = serializers.ChoiceField(choices=CareSide.choices)
    target = serializers.IntegerField(min_value=0)
    prefix = serializers.CharField(max_length=16, required=False, allow_blank=True)
    ward_id = serializers.IntegerField(required=False, allow_null=True)


class CareSideSummarySerializer(serializers.Serializer):
    care_side = serializers.CharField()
    label = serializers.CharField()
    active = serializers.IntegerField()
    busy = serializers.IntegerField()
    free = serializers.IntegerField()
    retired = serializers.IntegerField()
