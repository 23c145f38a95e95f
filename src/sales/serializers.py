"""Request serializers for the sales endpoints.

Ledger rows themselves are validated by :mod:`sales.services`; these only
shape the analytics, export and import requests.
"""
from rest_framework import serializers


class _AliasedSerializer(serializers.Serializer):
    """Accepts camelCase spellings of the snake_case fields."""

    ALIASES = {}

    def to_internal_value(self, data):
        if hasattr(data, "items"):
            data = {self.ALIASES.get(key, key): value for key, value in data.items()}
        return super().to_internal_value(data)


class AnalyticsRequestSerializer(_AliasedSerializer):
    ALIASES = {"startDate": "start_date", "endDate": "end_date", "groupBy": "group_by"}

    start_date = serializers.DateField(required=False, allow_null=True)
    end_date = serializers.DateField(required=False, allow_null=True)
    group_by = serializers.CharField(required=False, default="date")
    aggregation = serializers.CharField(required=False, default="sum")
    filters = serializers.DictField(required=False, default=dict)


class ExportRequestSerializer(serializers.Serializer):
    format = serializers.CharField(required=False, default="csv")
    filters = serializers.DictField(required=False, default=dict)


class ImportUploadSerializer(_AliasedSerializer):
    ALIASES = {"updateExisting": "update_existing"}

    file = serializers.FileField(required=False, allow_empty_file=True)
    update_existing = serializers.BooleanField(required=False, default=False)
    mappings = serializers.JSONField(required=False, binary=True)

    def validate_mappings(self, value):
        if value in (None, ""):
            return None
        if not isinstance(value, dict):
            raise serializers.ValidationError("Mappings must be an object of CSV column to field name")
        return {str(k): v for k, v in value.items()}
