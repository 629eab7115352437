# notifications/views.py
#
# Read-only email audit for admins.
# Filters: ?booking=<id>&email_type=REMINDER&status=FAILED
#
from rest_framework import viewsets

from staff.permissions import IsAdminOrBootstrap

from .models import EmailLog
from .serializers import EmailLogSerializer


class EmailLogViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = EmailLogSerializer
    permission_classes = [IsAdminOrBootstrap]

    def get_queryset(self):
        qs = EmailLog.objects.select_related("booking").order_by("-created_at")
        params = self.request.query_params
        if params.get("booking"):
            qs = qs.filter(booking_id=params["booking"])
        if params.get("email_type"):
            qs = qs.filter(email_type=params["email_type"].upper())
        if params.get("status"):
            qs = qs.filter(status=params["status"].upper())
        return qs
