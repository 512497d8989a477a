# backend/pc_core/api/urls.py
from __future__ import annotations

from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from pc_core.appointments.api.views import AppointmentViewSet
from pc_core.bed_stays.api.views import BedStayViewSet
from pc_core.beds.api.views import BedViewSet
from pc_core.patients.api.views import PatientViewSet

router = DefaultRouter()

router.register(r"patients", PatientViewSet, basename="patients")
router.register(r"beds", BedViewSet, basename="beds")
router.register(r"bed-stays", BedStayViewSet, basename="bed-stays")
router.register(r"appointments", AppointmentViewSet, basename="appointments")

urlpatterns = [
    path("auth/token/", TokenObtainPairView.as_view(), name="token-obtain"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("", include(router.urls)),
]
