from rest_framework import serializers


class PartialBatchFailureSerializer(serializers.Serializer):
    user_id = serializers.UUIDField(allow_null=True)
    stage = serializers.CharField()
    error = serializers.CharField()


class BatchReportSerializer(serializers.Serializer):
    """Schema of ``BatchReport.to_dict()``."""

    started_at = serializers.DateTimeField()
    users_found = serializers.IntegerField()
    reminded = serializers.ListField(child=serializers.UUIDField())
    skipped = serializers.ListField(child=serializers.UUIDField())
    pushed = serializers.ListField(child=serializers.UUIDField())
    failures = PartialBatchFailureSerializer(many=True)
