# backend/pc_core/appointments/api/views.py
from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema, inline_serializer
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from pc_core.appointments.api.serializers import (
    AppointmentCreateSerializer,
    AppointmentSerializer,
    AppointmentStatusSerializer,
    AppointmentUpdateSerializer,
)
from pc_core.appointments.models import Appointment
from pc_core.appointments.selectors import AppointmentSelector
from pc_core.appointments.services import AppointmentService
from pc_core.common.api.pagination import paginate
from pc_core.common.permissions import AppointmentPermission


class AppointmentViewSet(viewsets.ViewSet):
    """
    Appointments are addressed by numeric id or by code ("AP-000123").
    """

    permission_classes = [AppointmentPermission]
    lookup_value_regex = "[^/]+"

    serializer_class = AppointmentSerializer
    queryset = Appointment.objects.none()

    @extend_schema(
        parameters=[
            OpenApiParameter(name="q", type=str, required=False),
            OpenApiParameter(name="status", type=str, required=False, description="pending|done|cancelled|all"),
            OpenApiParameter(name="type", type=str, required=False),
            OpenApiParameter(name="department", type=str, required=False),
            OpenApiParameter(name="from", type=str, required=False, description="YYYY-MM-DD"),
            OpenApiParameter(name="to", type=str, required=False, description="YYYY-MM-DD"),
            OpenApiParameter(name="sort", type=str, required=False),
            OpenApiParameter(name="dir", type=str, required=False, description="asc|desc"),
        ],
        responses={200: AppointmentSerializer(many=True)},
    )
    def list(self, request):
        qs = AppointmentSelector.list_appointments(request.query_params)
        return paginate(request, qs, AppointmentSerializer)

    def retrieve(self, request, pk=None):
        return Response(AppointmentSerializer(AppointmentSelector.get_appointment(pk)).data)

    @extend_schema(request=AppointmentCreateSerializer, responses={201: AppointmentSerializer})
    def create(self, request):
        ser = AppointmentCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        appt = AppointmentService.create(actor_user_id=request.user.id, **ser.validated_data)
        return Response(
            AppointmentSerializer(AppointmentSelector.get_appointment(appt.id)).data,
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(request=AppointmentUpdateSerializer, responses={200: AppointmentSerializer})
    def partial_update(self, request, pk=None):
        ser = AppointmentUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        appt = AppointmentService.update(
            actor_user_id=request.user.id,
            id_or_code=pk,
            patch=dict(ser.validated_data),
        )
        return Response(AppointmentSerializer(AppointmentSelector.get_appointment(appt.id)).data)

    @extend_schema(responses={200: inline_serializer("AppointmentDeleted", {"deleted": serializers.BooleanField()})})
    def destroy(self, request, pk=None):
        deleted = AppointmentService.delete(actor_user_id=request.user.id, id_or_code=pk)
        return Response({"deleted": deleted}, status=status.HTTP_200_OK)

    @extend_schema(request=AppointmentStatusSerializer, responses={200: AppointmentSerializer})
    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        ser = AppointmentStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        appt = AppointmentService.transition_status(
            actor_user_id=request.user.id,
            id_or_code=pk,
            new_status=ser.validated_data["status"],
        )
        return Response(AppointmentSerializer(AppointmentSelector.get_appointment(appt.id)).data)

    @extend_schema(responses={200: inline_serializer("NextAppointmentCode", {"code": serializers.CharField()})})
    @action(detail=False, methods=["get"], url_path="next-code")
    def next_code(self, request):
        return Response({"code": AppointmentSelector.next_code()})
