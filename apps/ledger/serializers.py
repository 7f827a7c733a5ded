from rest_framework import serializers
from .models import (
    Participant,
    SplitEvent,
    SplitStatus,
    SplitType,
    Transaction,
    Wallet,
)
from apps.accounts.serializers import UserMinimalSerializer


# =============================================================================
# Input Serializers
# =============================================================================

class SplitEventCreateSerializer(serializers.Serializer):
    """
    Validate input for creating a split event.

    Fields:
        name (str): Display name of the bill
        total_amount (Decimal): Bill total
        split_type (str): ``equal`` or ``specified``
        participant_ids (list[UUID]): Invited users (creator is added automatically)
        creator_share (Decimal): Creator's own share, specified splits only
        receipt_ref (str): Uploaded receipt reference, specified splits only
    """

    name = serializers.CharField(max_length=200)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    split_type = serializers.ChoiceField(choices=SplitType.choices)
    participant_ids = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=False,
    )
    creator_share = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        required=False,
        allow_null=True,
    )
    receipt_ref = serializers.CharField(max_length=500, required=False, allow_blank=True)


class SplitFilterSerializer(serializers.Serializer):
    """Query parameters for listing splits."""

    status = serializers.ChoiceField(choices=SplitStatus.choices, required=False)


class SplitResponseInputSerializer(serializers.Serializer):
    accept = serializers.BooleanField()


class WalletAmountSerializer(serializers.Serializer):
    """Validate deposit / withdraw input."""

    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)


# =============================================================================
# Output Serializers
# =============================================================================

class ParticipantSerializer(serializers.ModelSerializer):
    user = UserMinimalSerializer(read_only=True)

    class Meta:
        model = Participant
        fields = [
            'id',
            'split_event',
            'user',
            'amount',
            'status',
            'is_creator',
            'is_outstanding',
            'paid_at',
            'created_at',
        ]
        read_only_fields = fields


class SplitEventSerializer(serializers.ModelSerializer):
    """Split event with its participants."""

    creator = UserMinimalSerializer(read_only=True)
    participants = ParticipantSerializer(many=True, read_only=True)

    class Meta:
        model = SplitEvent
        fields = [
            'id',
            'name',
            'total_amount',
            'split_type',
            'creator',
            'receipt_ref',
            'status',
            'participants',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class SplitEventListSerializer(serializers.ModelSerializer):
    """Lightweight list view with the requesting user's own share."""

    creator = UserMinimalSerializer(read_only=True)
    my_share = serializers.SerializerMethodField()

    class Meta:
        model = SplitEvent
        fields = [
            'id',
            'name',
            'total_amount',
            'split_type',
            'creator',
            'status',
            'my_share',
            'created_at',
        ]
        read_only_fields = fields

    def get_my_share(self, obj):
        request = self.context.get('request')
        if not request:
            return None
        for participant in obj.participants.all():
            if participant.user_id == request.user.id:
                return {
                    'amount': str(participant.amount),
                    'status': participant.status,
                    'is_creator': participant.is_creator,
                }
        return None


class SplitSummarySerializer(serializers.Serializer):
    """Serializer for split payment summary."""

    split_event = SplitEventListSerializer()
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    collected_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    outstanding_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    participants_count = serializers.IntegerField()
    paid_count = serializers.IntegerField()
    outstanding_count = serializers.IntegerField()
    declined_count = serializers.IntegerField()
    is_completed = serializers.BooleanField()
    participants = ParticipantSerializer(many=True)


class OutstandingSharesSerializer(serializers.Serializer):
    total_outstanding = serializers.DecimalField(max_digits=12, decimal_places=2)
    count = serializers.IntegerField()
    shares = ParticipantSerializer(many=True)


class WalletSerializer(serializers.ModelSerializer):
    class Meta:
        model = Wallet
        fields = ['id', 'balance', 'bank_connected', 'created_at', 'updated_at']
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    split_event_name = serializers.CharField(source='split_event.name', read_only=True, default=None)

    class Meta:
        model = Transaction
        fields = [
            'id',
            'type',
            'amount',
            'balance_effect',
            'balance_after',
            'description',
            'split_event',
            'split_event_name',
            'metadata',
            'created_at',
        ]
        read_only_fields = fields
