"""
Sales Dashboard API View.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import Capability
from accounts.permissions import HasCapability
from core.errors import error_response
from .serializers import SalesSummarySerializer
from .services import DashboardError, compute_dashboard

logger = logging.getLogger(__name__)


class DashboardView(APIView):
    """
    GET: Revenue, order count, top sellers, revenue per payment method
    and low-stock items.

    Returns 503 when any of the underlying reads fails.
    """
    permission_classes = [HasCapability]
    required_capability = Capability.VIEW_DASHBOARD

    def get(self, request):
        try:
            summary = compute_dashboard()
        except DashboardError as e:
            logger.error(f"Dashboard unavailable: {e}")
            return error_response('Dashboard Unavailable', str(e), status.HTTP_503_SERVICE_UNAVAILABLE)
        return Response(SalesSummarySerializer(summary).data)
