"""CSV / JSON download helpers."""
import csv
import json

from django.core.serializers.json import DjangoJSONEncoder
from django.http import HttpResponse


def rows_to_csv_response(rows, columns, filename):
    """Convert an iterable of dicts to a CSV HttpResponse.

    Args:
        rows: iterable of dicts (e.g. ``queryset.values(...)``)
        columns: list of (key_or_callable, header_label) tuples.
            If key_or_callable is a string, ``row.get(key)`` is used.
            If it's callable, it's called with the row.
        filename: download filename (without extension)
    """
    response = HttpResponse(content_type="text/csv; charset=utf-8")
    response["Content-Disposition"] = f'attachment; filename="{filename}.csv"'
    # UTF-8 BOM for Excel compatibility
    response.write("\ufeff")

    writer = csv.writer(response)
    writer.writerow([col[1] for col in columns])

    for row in rows:
        line = []
        for field, _ in columns:
            val = field(row) if callable(field) else row.get(field)
            line.append(str(val) if val is not None else "")
        writer.writerow(line)

    return response


def rows_to_json_response(rows, filename):
    """Pretty-printed JSON array served as an attachment."""
    response = HttpResponse(
        json.dumps(list(rows), cls=DjangoJSONEncoder, indent=2, ensure_ascii=False),
        content_type="application/json; charset=utf-8",
    )
    response["Content-Disposition"] = f'attachment; filename="{filename}.json"'
    return response
