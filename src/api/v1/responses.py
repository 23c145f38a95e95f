"""Success envelope shared by the v1 views."""
from rest_framework import status
from rest_framework.response import Response


def success_response(data=None, *, message=None, status_code=status.HTTP_200_OK, **extra):
    """``{"success": true, "data": ..., "message": ...}`` plus any ``extra`` keys."""
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    body.update(extra)
    return Response(body, status=status_code)
