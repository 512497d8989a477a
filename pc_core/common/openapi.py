# backend/pc_core/common/openapi.py
from __future__ import annotations

from drf_spectacular.openapi import AutoSchema


class PCAutoSchema(AutoSchema):
    """
    Groups operations by the pc_core app that serves them
    ("pc_core.bed_stays.api.views" -> "Bed stays") unless a view sets tags.
    """

    def get_tags(self):
        module = self.view.__class__.__module__ or ""
        parts = module.split(".")
        if len(parts) > 1 and parts[0] == "pc_core":
            return [parts[1].replace("_", " ").capitalize()]
        return super().get_tags()
