# backend/pc_core/conftest.py
from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from django.utils import timezone
from rest_framework.test import APIClient

from pc_core.beds.models import Bed, CareSide, Ward
from pc_core.patients.models import Patient


@pytest.fixture
def make_user(db):
    """
    make_user("NURSE") -> active user in the NURSE group.
    make_user() -> user without groups (READONLY).
    """
    User = get_user_model()
    counter = {"n": 0}

    def _make(*roles: str, **extra):
        counter["n"] += 1
        user = User.objects.create_user(
            username=extra.pop("username", f"user{counter['n']}"),
            password="testpass",
            is_active=True,
            **extra,
        )
        for role in roles:
            group, _ = Group.objects.get_or_create(name=role)
            user.groups.add(group)
        return user

    return _make


@pytest.fixture
def user(make_user):
    return make_user("ADMIN", username="testuser")


@pytest.fixture
def api_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def client_for(make_user):
    """client_for("RECEPTION") -> APIClient authenticated as a fresh user with that role."""

    def _client(*roles: str):
        c = APIClient()
        c.force_authenticate(user=make_user(*roles))
        return c

    return _client


@pytest.fixture
def make_patient(db):
    def _make(hn: str = "HN-00000001", full_name: str = "Test Patient", **extra):
        return Patient.objects.create(hn=hn, full_name=full_name, **extra)

    return _make


@pytest.fixture
def patient(make_patient):
    return make_patient()


@pytest.fixture
def other_patient(make_patient):
    return make_patient(hn="HN-00000002", full_name="Other Patient")


@pytest.fixture
def ward(db):
    return Ward.objects.create(name="Ward A")


@pytest.fixture
def make_bed(db):
    def _make(code: str, care_side: str = CareSide.PC, **extra):
        return Bed.objects.create(code=code, care_side=care_side, **extra)

    return _make


@pytest.fixture
def bed(make_bed):
    return make_bed("B-01")


@pytest.fixture
def now():
    return timezone.now().replace(microsecond=0)


@pytest.fixture
def hours():
    return lambda n: timedelta(hours=n)
