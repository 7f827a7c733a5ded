from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .serializers import BatchReportSerializer
from .services import ReminderScheduler


@extend_schema(
    request=None,
    responses={200: BatchReportSerializer},
    description="Run the payment reminder batch now (staff only). Users already reminded today are skipped.",
    tags=['reminders'],
)
@api_view(['POST'])
@permission_classes([IsAdminUser])
def run_reminders(request):
    """POST /api/reminders/run/"""
    report = ReminderScheduler.from_settings().run_batch()
    return Response(report.to_dict())
