import re

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from staff.models import Employee

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
from .services.catalog import format_duration, format_price

PHONE_RE = re.compile(r"^[\d\s\+\-\(\)]{5,20}$")
HHMM = "%H:%M"


# -------------------- Catalog --------------------
class ServiceCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = ServiceCategory
        fields = ["id", "name", "description", "display_order", "is_active", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]


class ServiceSerializer(serializers.ModelSerializer):
    price_formatted = serializers.SerializerMethodField()
    duration_formatted = serializers.SerializerMethodField()

    class Meta:
        model = Service
        fields = [
            "id", "category", "name", "description", "duration_minutes", "price",
            "price_formatted", "duration_formatted", "active", "display_order",
        ]

    def get_price_formatted(self, obj):
        return format_price(obj.price)

    def get_duration_formatted(self, obj):
        return format_duration(obj.duration_minutes)


class ServiceBundleItemSerializer(serializers.ModelSerializer):
    service = serializers.PrimaryKeyRelatedField(queryset=Service.objects.all())
    service_name = serializers.CharField(source="service.name", read_only=True)

    class Meta:
        model = ServiceBundleItem
        fields = ["id", "service", "service_name", "quantity", "display_order", "notes"]


class ServiceBundleSerializer(serializers.ModelSerializer):
    items = ServiceBundleItemSerializer(many=True)
    original_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    total_duration_minutes = serializers.IntegerField(read_only=True)
    discount_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, read_only=True)

    class Meta:
        model = ServiceBundle
        fields = [
            "id", "name", "description", "bundle_price", "original_price",
            "total_duration_minutes", "discount_percentage", "is_active",
            "display_order", "valid_from", "valid_until", "items",
        ]

    def validate(self, attrs):
        valid_from = attrs.get("valid_from", getattr(self.instance, "valid_from", None))
        valid_until = attrs.get("valid_until", getattr(self.instance, "valid_until", None))
        if valid_from and valid_until and valid_from > valid_until:
            raise serializers.ValidationError({"valid_until": "Must be on or after valid_from."})
        return attrs

    def create(self, validated_data):
        from .services.catalog import CatalogService

        items = validated_data.pop("items", [])
        return CatalogService.create_bundle(validated_data, items)

    def update(self, instance, validated_data):
        # Items are fixed after creation; edit the bundle fields only.
        validated_data.pop("items", None)
        return super().update(instance, validated_data)


# -------------------- Customers --------------------
class CustomerSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Customer
        fields = [
            "id", "first_name", "last_name", "full_name", "email", "phone", "notes",
            "total_bookings", "no_show_count", "last_visit", "created_at",
        ]
        read_only_fields = ["total_bookings", "no_show_count", "last_visit", "created_at"]

    def validate_phone(self, value):
        value = (value or "").strip()
        if value and not PHONE_RE.match(value):
            raise serializers.ValidationError("Invalid phone number.")
        return value

    def validate_email(self, value):
        return (value or "").strip().lower()


class CustomerInputSerializer(serializers.Serializer):
    """Customer block of a public booking request."""
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100)
    email = serializers.EmailField(max_length=255)
    phone = serializers.CharField(max_length=20)

    def validate_phone(self, value):
        value = value.strip()
        if not PHONE_RE.match(value):
            raise serializers.ValidationError("Invalid phone number.")
        return value


class ManualCustomerInputSerializer(CustomerInputSerializer):
    """Staff may take a walk-in or phone booking without full contact details."""
    last_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    email = serializers.EmailField(max_length=255, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)

    def validate_phone(self, value):
        if not value.strip():
            return ""
        return super().validate_phone(value)

    def validate(self, attrs):
        if not attrs.get("email") and not attrs.get("phone"):
            raise serializers.ValidationError("Provide an email or a phone number.")
        return attrs


# -------------------- Opening hours / blocks --------------------
class BusinessHoursSerializer(serializers.ModelSerializer):
    open_time = serializers.TimeField(format=HHMM)
    close_time = serializers.TimeField(format=HHMM)
    break_start_time = serializers.TimeField(format=HHMM, required=False, allow_null=True)
    break_end_time = serializers.TimeField(format=HHMM, required=False, allow_null=True)

    class Meta:
        model = BusinessHours
        fields = ["id", "day_of_week", "open_time", "close_time", "is_open", "break_start_time", "break_end_time"]

    def validate(self, attrs):
        instance = BusinessHours(**{**self._current_values(), **attrs})
        try:
            instance.clean()
        except DjangoValidationError as e:
            raise serializers.ValidationError(e.message_dict if hasattr(e, "error_dict") else e.messages)
        return attrs

    def _current_values(self):
        if self.instance is None:
            return {}
        return {f: getattr(self.instance, f) for f in self.Meta.fields if f != "id"}


class BlockedTimeSlotSerializer(serializers.ModelSerializer):
    start_time = serializers.TimeField(format=HHMM)
    end_time = serializers.TimeField(format=HHMM)
    employee = serializers.PrimaryKeyRelatedField(queryset=Employee.objects.all(), allow_null=True, required=False)
    employee_name = serializers.CharField(source="employee.name", read_only=True, default=None)

    class Meta:
        model = BlockedTimeSlot
        fields = ["id", "block_date", "start_time", "end_time", "reason", "employee", "employee_name", "created_at"]
        read_only_fields = ["created_at"]

    def validate(self, attrs):
        start = attrs.get("start_time", getattr(self.instance, "start_time", None))
        end = attrs.get("end_time", getattr(self.instance, "end_time", None))
        if start is not None and end is not None and start >= end:
            raise serializers.ValidationError({"end_time": "End time must be after start time."})
        return attrs


# -------------------- Bookings --------------------
class BookingSerializer(serializers.ModelSerializer):
    booking_number = serializers.CharField(read_only=True)
    customer = CustomerSerializer(read_only=True)
    target_name = serializers.CharField(read_only=True)
    employee_name = serializers.CharField(source="employee.name", read_only=True, default=None)
    start_time = serializers.TimeField(format=HHMM, read_only=True)
    end_time = serializers.TimeField(format=HHMM, read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id", "booking_number", "customer", "service", "bundle", "target_name",
            "employee", "employee_name", "booking_date", "start_time", "end_time",
            "status", "customer_notes", "admin_notes", "confirmation_sent_at",
            "reminder_sent_at", "cancelled_at", "cancellation_reason",
            "created_at", "updated_at",
        ]
        read_only_fields = fields


class BookingCreateSerializer(serializers.Serializer):
    service = serializers.IntegerField(required=False, allow_null=True)
    bundle = serializers.IntegerField(required=False, allow_null=True)
    employee = serializers.PrimaryKeyRelatedField(queryset=Employee.objects.all(), required=False, allow_null=True)
    booking_date = serializers.DateField(input_formats=["%Y-%m-%d"])
    start_time = serializers.TimeField(input_formats=["%H:%M", "%H:%M:%S"])
    customer = CustomerInputSerializer()
    customer_notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if bool(attrs.get("service")) == bool(attrs.get("bundle")):
            raise serializers.ValidationError("Provide exactly one of 'service' or 'bundle'.")
        return attrs


class ManualBookingCreateSerializer(BookingCreateSerializer):
    customer = ManualCustomerInputSerializer()
    admin_notes = serializers.CharField(required=False, allow_blank=True, default="")


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c for c, _ in Booking.STATUS_CHOICES])
    admin_notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class BookingCancelSerializer(serializers.Serializer):
    email = serializers.EmailField()
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)
