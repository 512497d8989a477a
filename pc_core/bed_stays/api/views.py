# backend/pc_core/bed_stays/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from pc_core.bed_stays.api.serializers import (
    BedStaySerializer,
    EndStaySerializer,
    HistoryQuerySerializer,
    OccupySerializer,
    TransferSerializer,
)
from pc_core.bed_stays.models import BedStay
from pc_core.bed_stays.selectors import BedStaySelector
from pc_core.bed_stays.services import BedStayService
from pc_core.common.permissions import BedStayPermission
from pc_core.patients.services import normalize_hn


class BedStayViewSet(viewsets.ViewSet):
    """
    Thin API layer over BedStayService / BedStaySelector.
    Writes return the affected stay re-read with its bed and patient.
    """

    permission_classes = [BedStayPermission]

    serializer_class = BedStaySerializer
    queryset = BedStay.objects.none()

    def _out(self, stay: BedStay, http_status=status.HTTP_200_OK) -> Response:
        fresh = BedStaySelector.get_stay(stay.id)
        return Response(BedStaySerializer(fresh).data, status=http_status)

    def retrieve(self, request, pk=None):
        return Response(BedStaySerializer(BedStaySelector.get_stay(pk)).data)

    @extend_schema(request=OccupySerializer, responses={201: BedStaySerializer})
    def create(self, request):
        ser = OccupySerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        stay = BedStayService.occupy(actor_user_id=request.user.id, **ser.validated_data)
        return self._out(stay, status.HTTP_201_CREATED)

    @extend_schema(responses={200: BedStaySerializer(many=True)})
    @action(detail=False, methods=["get"])
    def current(self, request):
        qs = BedStaySelector.current_occupancy(
            care_side=request.query_params.get("care_side") or None,
            ward_id=request.query_params.get("ward_id") or None,
        )
        return Response(BedStaySerializer(qs, many=True).data)

    @extend_schema(parameters=[HistoryQuerySerializer], responses={200: BedStaySerializer(many=True)})
    @action(detail=False, methods=["get"])
    def history(self, request):
        params = HistoryQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        if params.validated_data.get("bed"):
            qs = BedStaySelector.history_by_bed(params.validated_data["bed"])
        else:
            qs = BedStaySelector.history_by_patient(normalize_hn(params.validated_data["patient"]))
        return Response(BedStaySerializer(qs, many=True).data)

    @extend_schema(request=EndStaySerializer, responses={200: BedStaySerializer})
    @action(detail=True, methods=["post"])
    def end(self, request, pk=None):
        ser = EndStaySerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        stay = BedStayService.end(actor_user_id=request.user.id, stay_id=pk, **ser.validated_data)
        return self._out(stay)

    @extend_schema(request=None, responses={200: BedStaySerializer})
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        stay = BedStayService.cancel(actor_user_id=request.user.id, stay_id=pk)
        return self._out(stay)

    @extend_schema(request=TransferSerializer, responses={201: BedStaySerializer})
    @action(detail=True, methods=["post"])
    def transfer(self, request, pk=None):
        ser = TransferSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        dest = BedStayService.transfer(actor_user_id=request.user.id, stay_id=pk, **ser.validated_data)
        return self._out(dest, status.HTTP_201_CREATED)
