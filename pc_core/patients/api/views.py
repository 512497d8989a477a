# backend/pc_core/patients/api/views.py
from __future__ import annotations

from rest_framework import status, viewsets
from rest_framework.response import Response

from pc_core.common.api.pagination import paginate
from pc_core.common.permissions import PatientPermission
from pc_core.patients.api.serializers import PatientCreateSerializer, PatientSerializer
from pc_core.patients.models import Patient
from pc_core.patients.selectors import get_patient, search_patients
from pc_core.patients.services import PatientService


class PatientViewSet(viewsets.ViewSet):
    permission_classes = [PatientPermission]
    lookup_value_regex = "[^/]+"

    serializer_class = PatientSerializer
    queryset = Patient.objects.none()

    def list(self, request):
        qs = search_patients(q=request.query_params.get("q"))
        return paginate(request, qs, PatientSerializer)

    def retrieve(self, request, pk=None):
        return Response(PatientSerializer(get_patient(hn=pk)).data)

    def create(self, request):
        ser = PatientCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        patient = PatientService.create_patient(
            actor_user_id=request.user.id,
            **ser.validated_data,
        )
        return Response(PatientSerializer(patient).data, status=status.HTTP_201_CREATED)
