# backend/pc_core/beds/api/views.py
from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from pc_core.beds.api.serializers import (
    BedAvailabilityQuerySerializer,
    BedCreateSerializer,
    BedListQuerySerializer,
    BedReconcileSerializer,
    BedSerializer,
    CareSideSummarySerializer,
)
from pc_core.beds.models import Bed
from pc_core.beds.selectors import BedSelector
from pc_core.beds.services import BedCatalogService
from pc_core.common.permissions import BedPermission


class BedViewSet(viewsets.ViewSet):
    """
    Resource catalog: reads for everyone, changes for ADMIN.
    """

    permission_classes = [BedPermission]

    serializer_class = BedSerializer
    queryset = Bed.objects.none()

    @extend_schema(parameters=[BedListQuerySerializer], responses={200: BedSerializer(many=True)})
    def list(self, request):
        params = BedListQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        qs = BedSelector.list_beds(**params.validated_data)
        return Response(BedSerializer(qs, many=True).data)

    def retrieve(self, request, pk=None):
        return Response(BedSerializer(BedSelector.get_bed(pk)).data)

    @extend_schema(request=BedCreateSerializer, responses={201: BedSerializer})
    def create(self, request):
        ser = BedCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        bed = BedCatalogService.create_bed(actor_user_id=request.user.id, **ser.validated_data)
        return Response(BedSerializer(bed).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        parameters=[
            OpenApiParameter(name="from", type=str, required=True, description="ISO datetime, inclusive."),
            OpenApiParameter(name="to", type=str, required=False, description="ISO datetime, exclusive."),
            OpenApiParameter(name="care_side", type=str, required=False),
            OpenApiParameter(name="ward_id", type=int, required=False),
        ],
        responses={200: BedSerializer(many=True)},
    )
    @action(detail=False, methods=["get"])
    def available(self, request):
        qp = request.query_params
        data = {"start": qp.get("from"), "end": qp.get("to") or None}
        for key in ("care_side", "ward_id"):
            if qp.get(key):
                data[key] = qp.get(key)

        params = BedAvailabilityQuerySerializer(data=data)
        params.is_valid(raise_exception=True)

        qs = BedSelector.find_available_beds(**params.validated_data)
        return Response(BedSerializer(qs, many=True).data)

    @extend_schema(responses={200: CareSideSummarySerializer(many=True)})
    @action(detail=False, methods=["get"])
    def summary(self, request):
        return Response(CareSideSummarySerializer(BedSelector.summary_by_care_side(), many=True).data)

    @extend_schema(request=BedReconcileSerializer)
    @action(detail=False, methods=["post"])
    def reconcile(self, request):
        ser = BedReconcileSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        result = BedCatalogService.ensure_bed_count(actor_user_id=request.user.id, **ser.validated_data)
        return Response(result, status=status.HTTP_200_OK)

    @extend_schema(request=None, responses={200: BedSerializer})
    @action(detail=True, methods=["post"])
    def retire(self, request, pk=None):
        bed = BedCatalogService.retire_bed(actor_user_id=request.user.id, bed_id=pk)
        return Response(BedSerializer(bed).data, status=status.HTTP_200_OK)
