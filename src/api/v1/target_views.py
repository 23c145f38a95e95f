"""Targets API: CRUD, active targets, achievement and bulk upsert."""
from collections.abc import Mapping

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from api.v1.permissions import IsAdmin, IsAdminOrManager
from api.v1.responses import success_response
from core.activity import client_ip
from core.exceptions import ValidationError
from targets import services
from targets.achievement import compute_achievement, get_active_targets
from targets.reconciler import bulk_upsert_targets
from targets.serializers import TargetBulkSerializer, TargetSerializer


def _payload(request):
    if not isinstance(request.data, Mapping):
        raise ValidationError("Request body must be a JSON object")
    return request.data


class TargetViewSet(viewsets.ViewSet):

    def get_permissions(self):
        if self.action == "destroy":
            return [IsAdmin()]
        if self.action in ("create", "update", "partial_update", "bulk"):
            return [IsAdminOrManager()]
        return [IsAuthenticated()]

    # ────────────────────────────────────────────────────────────
    # CRUD
    # ────────────────────────────────────────────────────────────

    def list(self, request):
        queryset = services.list_targets(request.query_params)
        return success_response(TargetSerializer(queryset, many=True).data)

    def create(self, request):
        target = services.create_target(
            _payload(request),
            created_by=request.user,
            ip_address=client_ip(request),
        )
        return success_response(
            TargetSerializer(target).data,
            message="Target created successfully",
            status_code=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, pk=None):
        return success_response(TargetSerializer(services.get_target(pk)).data)

    def update(self, request, pk=None):
        target = services.update_target(
            pk, _payload(request), actor=request.user, ip_address=client_ip(request),
        )
        return success_response(TargetSerializer(target).data, message="Target updated successfully")

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        services.delete_target(pk, actor=request.user, ip_address=client_ip(request))
        return success_response(message="Target deleted successfully")

    # ────────────────────────────────────────────────────────────
    # Dashboard
    # ────────────────────────────────────────────────────────────

    @action(detail=False, methods=["get"], url_path="active")
    def active(self, request):
        """Targets in force on ``?date=`` (today by default)."""
        return success_response(get_active_targets(request.query_params.get("date")))

    @action(detail=False, methods=["get"], url_path="achievement")
    def achievement(self, request):
        return success_response(compute_achievement(request.query_params.get("date")))

    @action(detail=False, methods=["post"], url_path="bulk")
    def bulk(self, request):
        """Create or update many targets from a flat ``{key: value}`` payload."""
        ser = TargetBulkSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        options = ser.validated_data["options"]
        result = bulk_upsert_targets(
            ser.validated_data["targets"],
            period_start=options.get("period_start"),
            period_end=options.get("period_end"),
            currency=options.get("currency"),
            created_by=request.user,
            ip_address=client_ip(request),
        )
        return success_response(
            result.as_dict(),
            message=f"Updated {result.updated} and created {result.created} targets successfully",
        )
