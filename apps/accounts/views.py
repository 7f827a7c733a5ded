from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from .serializers import UserSerializer, PushTokenSerializer
from .services import register_push_token, remove_push_token, InvalidPushTokenError


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


@extend_schema(
    responses={200: UserSerializer},
    description="Get the authenticated user's profile.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_current_user(request):
    """Return the current user."""
    return Response(UserSerializer(request.user).data)


@extend_schema(
    request=PushTokenSerializer,
    responses={200: UserSerializer, 400: ErrorResponseSerializer},
    description="Register (PUT) or remove (DELETE) the device push token.",
    tags=['auth'],
)
@api_view(['PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def push_token(request):
    """Register or remove the current user's push token."""
    if request.method == 'DELETE':
        remove_push_token(user=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = PushTokenSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        user = register_push_token(
            user=request.user,
            push_token=serializer.validated_data['push_token'],
        )
    except InvalidPushTokenError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(UserSerializer(user).data)
