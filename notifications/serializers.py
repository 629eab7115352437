from rest_framework import serializers

from .models import EmailLog


class EmailLogSerializer(serializers.ModelSerializer):
    booking_number = serializers.SerializerMethodField()

    class Meta:
        model = EmailLog
        fields = [
            "id", "booking", "booking_number", "email_type", "recipient_email",
            "subject", "status", "sent_at", "error_message", "created_at",
        ]
        read_only_fields = fields

    def get_booking_number(self, obj):
        return obj.booking.booking_number if obj.booking_id else None
