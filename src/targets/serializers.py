"""Serializers for the targets endpoints."""
from rest_framework import serializers

from targets.models import Target


class TargetSerializer(serializers.ModelSerializer):
    """Read serializer; writes go through :mod:`targets.services`."""

    created_by_name = serializers.SerializerMethodField()

    class Meta:
        model = Target
        fields = [
            "id", "target_type", "target_id", "period_start", "period_end",
            "target_value", "currency", "created_by", "created_by_name",
            "created_at", "updated_at",
        ]
        read_only_fields = fields

    def get_created_by_name(self, obj):
        if obj.created_by is None:
            return None
        return obj.created_by.get_full_name() or obj.created_by.email


class TargetBulkSerializer(serializers.Serializer):
    targets = serializers.DictField(
        allow_empty=False,
        error_messages={"empty": "No target data provided", "required": "No target data provided"},
    )
    options = serializers.DictField(required=False, default=dict)

    def validate_options(self, value):
        aliases = {"periodStart": "period_start", "periodEnd": "period_end"}
        return {aliases.get(key, key): item for key, item in value.items()}
