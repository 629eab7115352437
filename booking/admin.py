from django.contrib import admin

from .models import (
    BlockedTimeSlot,
    Booking,
    BusinessHours,
    Customer,
    Service,
    ServiceBundle,
    ServiceBundleItem,
    ServiceCategory,
)


@admin.register(ServiceCategory)
class ServiceCategoryAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "display_order", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name",)


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "category", "price", "duration_minutes", "active")
    list_filter = ("active", "category")
    search_fields = ("name",)
    list_editable = ("price", "duration_minutes", "active")  # allow inline toggle


class ServiceBundleItemInline(admin.TabularInline):
    model = ServiceBundleItem
    extra = 1


@admin.register(ServiceBundle)
class ServiceBundleAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "bundle_price", "is_active", "valid_from", "valid_until")
    list_filter = ("is_active",)
    inlines = [ServiceBundleItemInline]


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("id", "first_name", "last_name", "email", "phone", "total_bookings", "no_show_count")
    search_fields = ("first_name", "last_name", "email", "phone")


@admin.register(BusinessHours)
class BusinessHoursAdmin(admin.ModelAdmin):
    list_display = ("day_of_week", "is_open", "open_time", "close_time", "break_start_time", "break_end_time")


@admin.register(BlockedTimeSlot)
class BlockedTimeSlotAdmin(admin.ModelAdmin):
    list_display = ("block_date", "start_time", "end_time", "employee", "reason")
    list_filter = ("block_date", "employee")


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "booking_number", "customer", "service", "bundle", "employee",
                    "booking_date", "start_time", "status")
    list_filter = ("status", "booking_date", "employee")
    search_fields = ("customer__first_name", "customer__last_name", "customer__email", "service__name")
    readonly_fields = ("public_id", "created_at", "updated_at", "confirmation_sent_at", "reminder_sent_at")
