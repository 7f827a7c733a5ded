from rest_framework import viewsets, status, serializers as drf_serializers
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from .serializers import (
    SplitEventCreateSerializer,
    SplitEventSerializer,
    SplitEventListSerializer,
    SplitFilterSerializer,
    SplitResponseInputSerializer,
    SplitSummarySerializer,
    ParticipantSerializer,
    OutstandingSharesSerializer,
    WalletAmountSerializer,
    WalletSerializer,
    TransactionSerializer,
)
from .services import (
    create_split,
    respond_to_split,
    decline_share,
    pay_share,
    list_user_splits,
    get_split_for_user,
    get_split_summary,
    get_user_outstanding,
    get_wallet,
    deposit,
    withdraw,
    get_transaction_history,
    LedgerServiceError,
    InvalidAmountError,
    InvalidShareError,
    MissingReceiptError,
    NoParticipantsError,
    UserNotFoundError,
    CreatorCannotRespondError,
    InsufficientFundsError,
    ParticipantNotFoundError,
    SplitEventNotFoundError,
    AlreadySettledError,
)


class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()
    code = drf_serializers.CharField()


# (status, code) per service exception
ERROR_RESPONSES = {
    InvalidAmountError: (status.HTTP_400_BAD_REQUEST, 'invalid_amount'),
    InvalidShareError: (status.HTTP_400_BAD_REQUEST, 'invalid_share'),
    MissingReceiptError: (status.HTTP_400_BAD_REQUEST, 'missing_receipt'),
    NoParticipantsError: (status.HTTP_400_BAD_REQUEST, 'no_participants'),
    UserNotFoundError: (status.HTTP_400_BAD_REQUEST, 'user_not_found'),
    CreatorCannotRespondError: (status.HTTP_400_BAD_REQUEST, 'creator_cannot_respond'),
    InsufficientFundsError: (status.HTTP_402_PAYMENT_REQUIRED, 'insufficient_funds'),
    ParticipantNotFoundError: (status.HTTP_404_NOT_FOUND, 'participant_not_found'),
    SplitEventNotFoundError: (status.HTTP_404_NOT_FOUND, 'split_not_found'),
    AlreadySettledError: (status.HTTP_409_CONFLICT, 'already_settled'),
}


def error_response(exc: LedgerServiceError) -> Response:
    """Translate a ledger service exception to an HTTP response."""
    http_status, code = ERROR_RESPONSES.get(
        type(exc), (status.HTTP_400_BAD_REQUEST, 'ledger_error')
    )
    return Response({'error': str(exc), 'code': code}, status=http_status)


class SplitPagination(PageNumberPagination):
    """Custom pagination for split events."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class SplitEventViewSet(viewsets.GenericViewSet):
    """
    Split events the current user takes part in.

    list: Splits where the user is creator or invitee (``?status=`` filter)
    create: Create a split and invite participants
    retrieve: Split detail with participants
    """

    serializer_class = SplitEventSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = SplitPagination
    lookup_value_regex = '[0-9a-fA-F-]{36}'

    def get_queryset(self):
        filter_serializer = SplitFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)
        return list_user_splits(
            user=self.request.user,
            status=filter_serializer.validated_data.get('status'),
        )

    def get_serializer_class(self):
        if self.action == 'list':
            return SplitEventListSerializer
        if self.action == 'create':
            return SplitEventCreateSerializer
        return SplitEventSerializer

    def _get_split(self, pk):
        return get_split_for_user(split_event_id=pk, user=self.request.user)

    def list(self, request):
        page = self.paginate_queryset(self.get_queryset())
        serializer = SplitEventListSerializer(page, many=True, context={'request': request})
        return self.get_paginated_response(serializer.data)

    @extend_schema(responses={200: SplitEventSerializer, 404: ErrorResponseSerializer})
    def retrieve(self, request, pk=None):
        try:
            split_event = self._get_split(pk)
        except LedgerServiceError as e:
            return error_response(e)
        return Response(SplitEventSerializer(split_event).data)

    @extend_schema(
        request=SplitEventCreateSerializer,
        responses={201: SplitEventSerializer, 400: ErrorResponseSerializer},
    )
    def create(self, request):
        serializer = SplitEventCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            split_event = create_split(
                name=data['name'],
                total_amount=data['total_amount'],
                split_type=data['split_type'],
                creator=request.user,
                participant_ids=data['participant_ids'],
                creator_share=data.get('creator_share'),
                receipt_ref=data.get('receipt_ref', ''),
            )
        except LedgerServiceError as e:
            return error_response(e)

        return Response(SplitEventSerializer(split_event).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=None, responses={200: ParticipantSerializer, 402: ErrorResponseSerializer, 409: ErrorResponseSerializer})
    @action(detail=True, methods=['post'])
    def pay(self, request, pk=None):
        """
        Pay the current user's share from their wallet.

        POST /api/splits/{id}/pay/
        """
        try:
            participant = pay_share(split_event_id=pk, user=request.user)
        except LedgerServiceError as e:
            return error_response(e)
        return Response(ParticipantSerializer(participant).data)

    @extend_schema(request=SplitResponseInputSerializer, responses={200: ParticipantSerializer})
    @action(detail=True, methods=['post'])
    def respond(self, request, pk=None):
        """
        Accept or decline an invitation.

        POST /api/splits/{id}/respond/
        Body: {"accept": true}
        """
        input_serializer = SplitResponseInputSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        try:
            participant = respond_to_split(
                split_event_id=pk,
                user=request.user,
                accept=input_serializer.validated_data['accept'],
            )
        except LedgerServiceError as e:
            return error_response(e)
        return Response(ParticipantSerializer(participant).data)

    @extend_schema(request=None, responses={200: ParticipantSerializer})
    @action(detail=True, methods=['post'])
    def decline(self, request, pk=None):
        """
        Decline the current user's share.

        POST /api/splits/{id}/decline/
        """
        try:
            participant = decline_share(split_event_id=pk, user=request.user)
        except LedgerServiceError as e:
            return error_response(e)
        return Response(ParticipantSerializer(participant).data)

    @extend_schema(responses={200: SplitSummarySerializer})
    @action(detail=True, methods=['get'])
    def summary(self, request, pk=None):
        """
        Payment status overview.

        GET /api/splits/{id}/summary/
        """
        try:
            split_event = self._get_split(pk)
        except LedgerServiceError as e:
            return error_response(e)
        summary = get_split_summary(split_event=split_event)
        return Response(SplitSummarySerializer(summary, context={'request': request}).data)


@extend_schema(
    responses={200: OutstandingSharesSerializer},
    description="Get all unpaid shares of the current user.",
    tags=['splits'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_outstanding(request):
    """
    GET /api/splits/my_outstanding/
    """
    outstanding = get_user_outstanding(user=request.user)
    return Response(OutstandingSharesSerializer(outstanding).data)


@extend_schema(responses={200: WalletSerializer}, tags=['wallet'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def wallet_detail(request):
    """GET /api/wallet/"""
    return Response(WalletSerializer(get_wallet(user=request.user)).data)


@extend_schema(responses={200: TransactionSerializer(many=True)}, tags=['wallet'])
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def wallet_transactions(request):
    """GET /api/wallet/transactions/"""
    paginator = SplitPagination()
    page = paginator.paginate_queryset(get_transaction_history(user=request.user), request)
    return paginator.get_paginated_response(TransactionSerializer(page, many=True).data)


@extend_schema(
    request=WalletAmountSerializer,
    responses={201: TransactionSerializer, 400: ErrorResponseSerializer},
    tags=['wallet'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def wallet_deposit(request):
    """POST /api/wallet/deposit/"""
    serializer = WalletAmountSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        entry = deposit(
            user=request.user,
            amount=serializer.validated_data['amount'],
            description=serializer.validated_data.get('description', ''),
        )
    except LedgerServiceError as e:
        return error_response(e)
    return Response(TransactionSerializer(entry).data, status=status.HTTP_201_CREATED)


@extend_schema(
    request=WalletAmountSerializer,
    responses={201: TransactionSerializer, 402: ErrorResponseSerializer},
    tags=['wallet'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def wallet_withdraw(request):
    """POST /api/wallet/withdraw/"""
    serializer = WalletAmountSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        entry = withdraw(
            user=request.user,
            amount=serializer.validated_data['amount'],
            description=serializer.validated_data.get('description', ''),
        )
    except LedgerServiceError as e:
        return error_response(e)
    return Response(TransactionSerializer(entry).data, status=status.HTTP_201_CREATED)
