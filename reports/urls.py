# reports/urls.py
#
# /api/reports/summary (trailing slash optional)

from django.urls import re_path

from .views import ReportsView

urlpatterns = [
    re_path(r"^summary/?$", ReportsView.as_view(), name="reports-summary"),
]
