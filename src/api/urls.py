"""Main API URL router for /api/v1/."""
from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from api.v1.account_views import MeView
from api.v1.sales_views import SalesLineViewSet
from api.v1.target_views import TargetViewSet

app_name = "api"

router = DefaultRouter()
router.register(r"sales", SalesLineViewSet, basename="sales")
router.register(r"targets", TargetViewSet, basename="targets")

urlpatterns = [
    path("", include(router.urls)),

    # Auth
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("auth/me/", MeView.as_view(), name="auth-me"),
]
