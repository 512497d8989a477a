# backend/pc_core/audit/models.py
from django.conf import settings
from django.db import models


class AuditEvent(models.Model):
    """
    Immutable audit record.
    Written in the same transaction as the scheduling write it describes.
    """
    event_code = models.CharField(max_length=128, db_index=True)  # e.g. "bed_stay.transferred"
    entity_type = models.CharField(max_length=64, db_index=True)  # e.g. "BedStay"
    entity_id = models.CharField(max_length=64, db_index=True)

    actor_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="audit_events",
        null=True,
        blank=True,
    )

    occurred_at = models.DateTimeField(auto_now_add=True, db_index=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "audit_audit_event"
        indexes = [
            models.Index(fields=["entity_type", "entity_id"], name="audit_entity_idx"),
            models.Index(fields=["event_code", "occurred_at"], name="audit_code_time_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.event_code} {self.entity_type}:{self.entity_id}"
