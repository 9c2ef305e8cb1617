from __future__ import annotations

from rest_framework import serializers


class RejectSerializer(serializers.Serializer):
    """Body of the reject transitions (time entries, timesheets)."""
    reason = serializers.CharField(required=False, allow_blank=True, default="")
