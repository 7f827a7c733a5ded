import hmac

from django.conf import settings
from rest_framework import status, viewsets, serializers
from rest_framework.decorators import action, api_view, authentication_classes, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .serializers import (
    NotificationSerializer,
    NotificationCreateSerializer,
    NotificationCreateResponseSerializer,
    UnreadCountSerializer,
    MarkAllReadResponseSerializer,
)
from .services import (
    create_notification_v2,
    list_notifications,
    mark_read,
    mark_all_read,
    delete_notification,
    get_unread_count,
    NotificationNotFoundError,
)
from .services.delivery import SERVICE_KEY_HEADER


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


class NotificationPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


def _has_valid_service_key(request):
    expected = settings.NOTIFICATIONS_SERVICE_KEY
    if not expected:
        # Without a configured key the endpoint is only open in development
        return settings.DEBUG
    provided = request.headers.get(SERVICE_KEY_HEADER, '')
    return hmac.compare_digest(provided, expected)


@extend_schema(
    request=NotificationCreateSerializer,
    responses={201: NotificationCreateResponseSerializer, 400: ErrorResponseSerializer},
    description=(
        "Create a notification for any user with service privilege. "
        "Requires the X-Notifications-Key header; without a configured key "
        "the endpoint only accepts requests when DEBUG is on."
    ),
    tags=['notifications'],
)
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def create_notification(request):
    """Backend endpoint used by the primary delivery tier."""
    if not _has_valid_service_key(request):
        return Response(
            {'success': False, 'error': 'Invalid service key'},
            status=status.HTTP_401_UNAUTHORIZED
        )

    serializer = NotificationCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(
            {'success': False, 'error': 'Missing required fields', 'details': serializer.errors},
            status=status.HTTP_400_BAD_REQUEST
        )

    data = serializer.validated_data
    result = create_notification_v2(
        p_user_id=data['user_id'],
        p_type=data['type'],
        p_title=data['title'],
        p_message=data['message'],
        p_metadata=data.get('metadata'),
        p_split_event_id=data.get('split_event_id'),
        p_friendship_id=data.get('friendship_id'),
    )

    if not result['success']:
        return Response(result, status=status.HTTP_400_BAD_REQUEST)
    return Response(result, status=status.HTTP_201_CREATED)


class NotificationViewSet(viewsets.GenericViewSet):
    """
    The current user's inbox.

    list: Newest first, ``?unread=true`` for unread only
    destroy: Delete one notification
    """

    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = NotificationPagination
    lookup_value_regex = '[0-9a-fA-F-]{36}'

    def get_queryset(self):
        unread_only = self.request.query_params.get('unread', '').lower() in ('1', 'true')
        return list_notifications(user=self.request.user, unread_only=unread_only)

    def list(self, request):
        page = self.paginate_queryset(self.get_queryset())
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    @extend_schema(responses={204: None, 404: ErrorResponseSerializer})
    def destroy(self, request, pk=None):
        try:
            delete_notification(user=request.user, notification_id=pk)
        except NotificationNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=None, responses={200: NotificationSerializer, 404: ErrorResponseSerializer})
    @action(detail=True, methods=['post'])
    def read(self, request, pk=None):
        """
        Mark a notification as read.

        POST /api/notifications/{id}/read/
        """
        try:
            notification = mark_read(user=request.user, notification_id=pk)
        except NotificationNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response(NotificationSerializer(notification).data)

    @extend_schema(request=None, responses={200: MarkAllReadResponseSerializer})
    @action(detail=False, methods=['post'])
    def read_all(self, request):
        """POST /api/notifications/read_all/"""
        updated = mark_all_read(user=request.user)
        return Response({'updated': updated})

    @extend_schema(responses={200: UnreadCountSerializer})
    @action(detail=False, methods=['get'])
    def unread_count(self, request):
        """GET /api/notifications/unread_count/"""
        return Response({'unread_count': get_unread_count(user=request.user)})
