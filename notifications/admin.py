from django.contrib import admin
from notifications.models import EmailLog


@admin.register(EmailLog)
class EmailLogAdmin(admin.ModelAdmin):
    list_display = ("id", "email_type", "recipient_email", "status", "sent_at", "created_at")
    list_filter = ("status", "email_type", "created_at")
    search_fields = ("recipient_email", "subject")
    readonly_fields = ("created_at",)
