"""Sales ledger API: CRUD, summary, analytics, export and CSV import."""
import logging
from collections.abc import Mapping

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated

from analytics.aggregation import AggregationRequest, SalesFilters, aggregate, get_summary
from api.v1.permissions import IsAdmin, IsAdminOrManager
from api.v1.responses import success_response
from core.activity import client_ip
from core.exceptions import ValidationError
from sales import services
from sales.csv_import import decode_upload, parse_sales_csv
from sales.importer import import_batch
from sales.serializers import (
    AnalyticsRequestSerializer,
    ExportRequestSerializer,
    ImportUploadSerializer,
)

logger = logging.getLogger("salesdash")


def _payload(request):
    if not isinstance(request.data, Mapping):
        raise ValidationError("Request body must be a JSON object")
    return request.data


class SalesLineViewSet(viewsets.ViewSet):
    """Ledger lines keyed by ``invoice_id``.

    Reads are open to any authenticated user; writes need ADMIN or MANAGER
    and deletion needs ADMIN.
    """

    lookup_field = "invoice_id"
    lookup_value_regex = r"[^/]+"
    parser_classes = [JSONParser, FormParser, MultiPartParser]

    def get_permissions(self):
        if self.action == "destroy":
            return [IsAdmin()]
        if self.action in ("create", "update", "partial_update", "import_csv"):
            return [IsAdminOrManager()]
        return [IsAuthenticated()]

    # ────────────────────────────────────────────────────────────
    # CRUD
    # ────────────────────────────────────────────────────────────

    def list(self, request):
        params = request.query_params
        result = services.list_sales(
            SalesFilters.from_mapping(params),
            limit=params.get("limit"),
            offset=params.get("offset"),
        )
        return success_response(result["results"], totals=result["totals"], count=result["count"])

    def create(self, request):
        sale = services.create_sale(
            _payload(request), actor=request.user, ip_address=client_ip(request),
        )
        return success_response(
            sale, message="Sale created successfully", status_code=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, invoice_id=None):
        return success_response(services.get_sale(invoice_id))

    def update(self, request, invoice_id=None):
        sale = services.update_sale(
            invoice_id, _payload(request), actor=request.user, ip_address=client_ip(request),
        )
        return success_response(sale, message="Sale updated successfully")

    def partial_update(self, request, invoice_id=None):
        return self.update(request, invoice_id=invoice_id)

    def destroy(self, request, invoice_id=None):
        services.delete_sale(invoice_id, actor=request.user, ip_address=client_ip(request))
        return success_response(message="Sale deleted successfully")

    # ────────────────────────────────────────────────────────────
    # Reporting
    # ────────────────────────────────────────────────────────────

    @action(detail=False, methods=["get"], url_path="summary")
    def summary(self, request):
        """Headline figures with growth against the preceding window."""
        return success_response(get_summary(SalesFilters.from_mapping(request.query_params)))

    @action(detail=False, methods=["post"], url_path="analytics")
    def analytics(self, request):
        """Grouped aggregation of ``item_net``."""
        ser = AnalyticsRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        aggregation_request = AggregationRequest.build(
            start_date=d.get("start_date"),
            end_date=d.get("end_date"),
            group_by=d["group_by"],
            aggregation=d["aggregation"],
            filters=d["filters"],
        )
        return success_response(aggregate(aggregation_request))

    @action(detail=False, methods=["post"], url_path="export")
    def export(self, request):
        ser = ExportRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data
        return services.export_sales(SalesFilters.from_mapping(d["filters"]), d["format"])

    # ────────────────────────────────────────────────────────────
    # Import
    # ────────────────────────────────────────────────────────────

    @action(detail=False, methods=["post"], url_path="import")
    def import_csv(self, request):
        """Import a CSV upload; any invalid row rejects the whole file."""
        ser = ImportUploadSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        d = ser.validated_data

        upload = d.get("file")
        parsed = parse_sales_csv(decode_upload(upload), d.get("mappings"))
        if parsed.total_rows == 0:
            raise ValidationError("No data found in CSV file")
        if not parsed.is_valid:
            raise ValidationError(
                f"{len(parsed.invalid_rows)} rows failed validation",
                details={"invalid_rows": parsed.first_invalid()},
            )

        result = import_batch(
            parsed.rows,
            update_existing=d["update_existing"],
            actor=request.user,
            ip_address=client_ip(request),
        )
        logger.info("CSV %s imported by %s", getattr(upload, "name", "upload"), request.user)

        message = f"Imported {result.imported_count} records successfully"
        if result.error_count:
            message += f", with {result.error_count} errors"
        return success_response(
            result.as_dict(),
            message=message,
            skipped_rows=parsed.skipped_rows,
            unmapped_columns=parsed.unmapped_columns,
        )
