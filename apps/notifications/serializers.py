from rest_framework import serializers
from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    """Full notification representation (inbox and endpoint responses)."""

    class Meta:
        model = Notification
        fields = [
            'id',
            'user',
            'type',
            'title',
            'message',
            'metadata',
            'split_event',
            'friendship_id',
            'read',
            'created_at',
        ]
        read_only_fields = fields


class NotificationCreateSerializer(serializers.Serializer):
    """Input of the notification creation endpoint."""

    user_id = serializers.UUIDField()
    type = serializers.CharField(max_length=50)
    title = serializers.CharField(max_length=200)
    message = serializers.CharField()
    metadata = serializers.DictField(required=False, default=dict)
    split_event_id = serializers.UUIDField(required=False, allow_null=True)
    friendship_id = serializers.UUIDField(required=False, allow_null=True)


class NotificationCreateResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    notification = NotificationSerializer(required=False)
    error = serializers.CharField(required=False)


class UnreadCountSerializer(serializers.Serializer):
    unread_count = serializers.IntegerField()


class MarkAllReadResponseSerializer(serializers.Serializer):
    updated = serializers.IntegerField()
