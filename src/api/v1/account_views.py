"""Views about the authenticated principal."""
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from accounts.serializers import UserSerializer
from api.v1.responses import success_response


class MeView(APIView):
    """Return the authenticated user's profile."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return success_response(UserSerializer(request.user).data)
