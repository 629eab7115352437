# staff/admin.py
from django.contrib import admin
from .models import Employee


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "role", "is_active", "is_admin")
    list_filter = ("is_active", "is_admin")
    search_fields = ("name", "email")
    exclude = ("password",)
