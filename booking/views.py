# booking/views.py
#
# Purpose:
# - Public catalog (categories, services, bundles) and opening hours.
# - Public booking flow: availability -> create booking -> cancel.
# - Admin surface: customers, manual bookings, status changes, blocked slots.
#
# Permissions (staff.permissions):
#   * Catalog / business hours: read for anyone, write for admins.
#   * Booking create, availability and cancel: no login.
#   * Booking list/detail: any employee. Everything else: admins.
#
# Domain errors are raised by the services as APIExceptions
# (booking.exceptions) and rendered by DRF as {"detail": ...}.
#
import logging

from django.db.models import Prefetch, ProtectedError, Q
from django.utils import timezone
from rest_framework import mixins, serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from staff.permissions import IsAdminOrBootstrap, IsAdminOrReadOnly, IsEmployee, has_bootstrap_secret, is_admin_user

from .exceptions import InvalidBookingOperation, ResourceNotFound
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
from .serializers import (
    BlockedTimeSlotSerializer,
    BookingCancelSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    BookingStatusSerializer,
    BusinessHoursSerializer,
    CustomerSerializer,
    ManualBookingCreateSerializer,
    ServiceBundleSerializer,
    ServiceCategorySerializer,
    ServiceSerializer,
)
from .services.availability_engine import AvailabilityEngine
from .services.blocks import BlockedSlotService
from .services.booking_manager import BookingManager
from .services.catalog import CatalogService
from .services.customers import ensure_unique_contact
from .services.slot_utils import add_minutes, parse_date, parse_hhmm
from .services.targets import resolve_target

logger = logging.getLogger(__name__)


def _query_date(request, name="date", required=True):
    raw = (request.query_params.get(name) or "").strip()
    if not raw:
        if required:
            raise serializers.ValidationError({name: "This parameter is required (YYYY-MM-DD)."})
        return None
    try:
        return parse_date(raw)
    except ValueError:
        raise serializers.ValidationError({name: "Invalid date format. Use YYYY-MM-DD."})


def _query_time(request, name):
    raw = (request.query_params.get(name) or "").strip()
    try:
        return parse_hhmm(raw)
    except ValueError:
        raise serializers.ValidationError({name: "Invalid time format. Use HH:MM."})


def _query_int(request, name):
    raw = (request.query_params.get(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise serializers.ValidationError({name: "Must be an integer id."})


# -------------------- Catalog --------------------
class ServiceCategoryViewSet(viewsets.ModelViewSet):
    serializer_class = ServiceCategorySerializer
    permission_classes = [IsAdminOrReadOnly]

    def get_queryset(self):
        qs = ServiceCategory.objects.all()
        if is_admin_user(self.request.user) and self.request.query_params.get("include_inactive") == "true":
            return qs
        return qs.filter(is_active=True)

    def perform_destroy(self, instance):
        CatalogService.deactivate_category(instance)


class ServiceViewSet(viewsets.ModelViewSet):
    """
    Service catalog:
    - Anyone can list active services (optionally ?category=<id>).
    - Admins see inactive ones too and can create/update/delete/toggle.
    """
    serializer_class = ServiceSerializer
    permission_classes = [IsAdminOrReadOnly]

    def get_queryset(self):
        qs = Service.objects.select_related("category")
        if not is_admin_user(self.request.user):
            qs = qs.filter(active=True)
        category = _query_int(self.request, "category")
        if category is not None:
            qs = qs.filter(category_id=category)
        return qs

    def perform_destroy(self, instance):
        service_id = instance.pk
        try:
            instance.delete()
        except ProtectedError:
            raise InvalidBookingOperation("This service has bookings or bundles; deactivate it instead.")
        logger.info("Service %s deleted", service_id)

    @action(detail=True, methods=["patch"], url_path="toggle-active")
    def toggle_active(self, request, pk=None):
        service = self.get_object()
        service.active = not service.active
        service.save(update_fields=["active", "updated_at"])
        logger.info("Service %s active=%s", service.pk, service.active)
        return Response(self.get_serializer(service).data)


class ServiceBundleViewSet(viewsets.ModelViewSet):
    """
    Bundles. Expired ones (valid_until in the past) are hidden unless
    ?include_expired=true.
    """
    serializer_class = ServiceBundleSerializer
    permission_classes = [IsAdminOrReadOnly]

    def get_queryset(self):
        qs = ServiceBundle.objects.prefetch_related(
            Prefetch("items", queryset=ServiceBundleItem.objects.select_related("service"))
        )
        if not is_admin_user(self.request.user):
            qs = qs.filter(is_active=True)
        if self.request.query_params.get("include_expired") != "true":
            today = timezone.localdate()
            qs = qs.filter(Q(valid_until__isnull=True) | Q(valid_until__gte=today))
        return qs

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError:
            raise InvalidBookingOperation("This bundle has bookings; deactivate it instead.")


class BusinessHoursViewSet(viewsets.ModelViewSet):
    queryset = BusinessHours.objects.all()
    serializer_class = BusinessHoursSerializer
    permission_classes = [IsAdminOrReadOnly]
    pagination_class = None


# -------------------- Customers (admin) --------------------
class CustomerViewSet(viewsets.ModelViewSet):
    serializer_class = CustomerSerializer
    permission_classes = [IsAdminOrBootstrap]

    def get_queryset(self):
        qs = Customer.objects.all()
        search = (self.request.query_params.get("search") or "").strip()
        if search:
            qs = qs.filter(
                Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(email__icontains=search)
                | Q(phone__icontains=search)
            )
        return qs

    def retrieve(self, request, *args, **kwargs):
        customer = self.get_object()
        data = self.get_serializer(customer).data
        recent = customer.bookings.select_related("service", "bundle", "employee").order_by(
            "-booking_date", "-start_time"
        )[:10]
        data["recent_bookings"] = [
            {
                "id": b.id,
                "booking_number": b.booking_number,
                "booking_date": b.booking_date.isoformat(),
                "start_time": b.start_time.strftime("%H:%M"),
                "target_name": b.target_name,
                "status": b.status,
            }
            for b in recent
        ]
        return Response(data)

    def perform_create(self, serializer):
        data = serializer.validated_data
        ensure_unique_contact(data.get("email"), data.get("phone"))
        customer = serializer.save()
        logger.info("Customer %s created by admin", customer.pk)

    def perform_update(self, serializer):
        data = serializer.validated_data
        ensure_unique_contact(
            data.get("email", serializer.instance.email),
            data.get("phone", serializer.instance.phone),
            exclude_id=serializer.instance.pk,
        )
        serializer.save()

    def perform_destroy(self, instance):
        customer_id = instance.pk
        instance.delete()
        logger.info("Customer %s deleted with bookings", customer_id)


# -------------------- Blocked time slots (admin) --------------------
class BlockedTimeSlotViewSet(viewsets.ModelViewSet):
    """
    ?date_from=YYYY-MM-DD&date_to=YYYY-MM-DD&employee=<id>
    """
    serializer_class = BlockedTimeSlotSerializer
    permission_classes = [IsAdminOrBootstrap]
    service = BlockedSlotService()

    def get_queryset(self):
        qs = BlockedTimeSlot.objects.select_related("employee")
        date_from = _query_date(self.request, "date_from", required=False)
        date_to = _query_date(self.request, "date_to", required=False)
        employee = _query_int(self.request, "employee")
        if date_from:
            qs = qs.filter(block_date__gte=date_from)
        if date_to:
            qs = qs.filter(block_date__lte=date_to)
        if employee is not None:
            qs = qs.filter(Q(employee_id=employee) | Q(employee__isnull=True))
        return qs

    def perform_create(self, serializer):
        data = serializer.validated_data
        serializer.instance = self.service.create(
            data["block_date"],
            data["start_time"],
            data["end_time"],
            reason=data.get("reason", ""),
            employee=data.get("employee"),
        )

    def perform_update(self, serializer):
        serializer.instance = self.service.update(serializer.instance, **serializer.validated_data)

    def perform_destroy(self, instance):
        self.service.delete(instance)


# -------------------- Bookings --------------------
class BookingViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """
    Endpoints:
    - GET    /api/bookings/availability/?service=ID&date=YYYY-MM-DD[&employee=ID]   (or bundle=ID)
    - GET    /api/bookings/availability/check/?date=&start=&end=[&employee=]
    - GET    /api/bookings/availability/employees/?date=&start=&end=
    - POST   /api/bookings/                     public create
    - POST   /api/bookings/manual/              admin create (always CONFIRMED)
    - POST   /api/bookings/{id}/cancel/         public with matching email, or admin
    - POST   /api/bookings/{id}/confirm/        admin
    - PATCH  /api/bookings/{id}/status/         admin
    - DELETE /api/bookings/{id}/                admin hard delete
    - GET    /api/bookings/?date=&date_from=&date_to=&status=&employee=&customer=   employees
    """
    serializer_class = BookingSerializer
    manager = BookingManager()
    engine = AvailabilityEngine()

    public_actions = {"create", "availability", "availability_check", "availability_employees", "cancel"}
    employee_actions = {"list", "retrieve"}

    def get_permissions(self):
        if self.action in self.public_actions:
            return [AllowAny()]
        if self.action in self.employee_actions:
            return [IsEmployee()]
        return [IsAdminOrBootstrap()]

    def get_queryset(self):
        qs = Booking.objects.select_related("customer", "service", "bundle", "employee").order_by(
            "booking_date", "start_time"
        )
        if self.action != "list":
            return qs

        params = self.request.query_params
        day = _query_date(self.request, "date", required=False)
        date_from = _query_date(self.request, "date_from", required=False)
        date_to = _query_date(self.request, "date_to", required=False)
        if day:
            qs = qs.filter(booking_date=day)
        if date_from:
            qs = qs.filter(booking_date__gte=date_from)
        if date_to:
            qs = qs.filter(booking_date__lte=date_to)
        if params.get("status"):
            qs = qs.filter(status=params["status"].upper())
        employee = _query_int(self.request, "employee")
        if employee is not None:
            qs = qs.filter(employee_id=employee)
        customer = _query_int(self.request, "customer")
        if customer is not None:
            qs = qs.filter(customer_id=customer)
        return qs

    def _get_booking(self, pk):
        booking = self.get_queryset().filter(pk=pk).first()
        if booking is None:
            raise ResourceNotFound("Booking not found.")
        return booking

    # ---- creation ----
    def _create(self, request, serializer_class, manual):
        serializer = serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        target = resolve_target(service_id=data.get("service"), bundle_id=data.get("bundle"))
        booking = self.manager.create_booking(
            target,
            data["booking_date"],
            data["start_time"],
            data["customer"],
            employee=data.get("employee"),
            customer_notes=data.get("customer_notes", ""),
            manual=manual,
        )
        if manual and data.get("admin_notes"):
            booking.admin_notes = data["admin_notes"]
            booking.save(update_fields=["admin_notes", "updated_at"])

        out = BookingSerializer(self._get_booking(booking.pk))
        return Response(out.data, status=status.HTTP_201_CREATED)

    def create(self, request, *args, **kwargs):
        return self._create(request, BookingCreateSerializer, manual=False)

    @action(detail=False, methods=["post"])
    def manual(self, request):
        return self._create(request, ManualBookingCreateSerializer, manual=True)

    # ---- lifecycle ----
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        """
        Public cancel: body {"email": "...", "reason": "..."} must match the
        booking's customer. Admins may omit the email.
        """
        booking = self._get_booking(pk)
        if is_admin_user(request.user) or has_bootstrap_secret(request):
            reason = (request.data.get("reason") or "").strip()
        else:
            serializer = BookingCancelSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            if serializer.validated_data["email"].strip().lower() != (booking.customer.email or "").lower():
                raise ResourceNotFound("Booking not found.")
            reason = serializer.validated_data["reason"]

        booking = self.manager.cancel_booking(booking, reason=reason)
        return Response(BookingSerializer(self._get_booking(booking.pk)).data)

    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):
        booking = self.manager.confirm_booking(self._get_booking(pk))
        return Response(BookingSerializer(self._get_booking(booking.pk)).data)

    @action(detail=True, methods=["patch"], url_path="status")
    def change_status(self, request, pk=None):
        serializer = BookingStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = self.manager.change_status(
            self._get_booking(pk),
            serializer.validated_data["status"],
            admin_notes=serializer.validated_data.get("admin_notes"),
        )
        return Response(BookingSerializer(self._get_booking(booking.pk)).data)

    def perform_destroy(self, instance):
        self.manager.delete_booking(instance)

    # ---- availability ----
    @action(detail=False, methods=["get"], url_path="availability")
    def availability(self, request):
        """
        GET /api/bookings/availability/?service=ID&date=YYYY-MM-DD[&employee=ID]
        Every candidate slot is returned with is_available.
        """
        day = _query_date(request)
        service = _query_int(request, "service")
        bundle = _query_int(request, "bundle")
        if (service is None) == (bundle is None):
            raise serializers.ValidationError({"detail": "Provide exactly one of 'service' or 'bundle'."})

        result = self.engine.get_availability(
            day, service=service, bundle=bundle, employee_id=_query_int(request, "employee")
        )
        return Response(result.as_dict())

    @action(detail=False, methods=["get"], url_path="availability/check")
    def availability_check(self, request):
        day = _query_date(request)
        start = _query_time(request, "start")
        end = _query_time(request, "end")
        if start >= end:
            raise serializers.ValidationError({"end": "End must be after start."})
        employee_id = _query_int(request, "employee")
        return Response({
            "date": day.isoformat(),
            "start": start.strftime("%H:%M"),
            "end": end.strftime("%H:%M"),
            "employee": employee_id,
            "is_available": self.engine.is_slot_available(day, start, end, employee_id),
        })

    @action(detail=False, methods=["get"], url_path="availability/employees")
    def availability_employees(self, request):
        """
        With start/end: ids of employees free for that interval.
        With service (or duration) instead: every active employee's slots.
        """
        day = _query_date(request)
        if request.query_params.get("start"):
            start = _query_time(request, "start")
            if request.query_params.get("end"):
                end = _query_time(request, "end")
            else:
                duration = _query_int(request, "duration")
                if duration is not None and duration <= 0:
                    raise serializers.ValidationError({"duration": "Must be a positive number of minutes."})
                end = add_minutes(start, duration) if duration else None
            if end is None or start >= end:
                raise serializers.ValidationError({"end": "Provide an end after start, or a duration."})
            return Response({
                "date": day.isoformat(),
                "start": start.strftime("%H:%M"),
                "end": end.strftime("%H:%M"),
                "employee_ids": self.engine.available_employees(day, start, end),
            })

        service = _query_int(request, "service")
        if service is not None:
            target = resolve_target(service_id=service)
            if not target.is_bookable_on(day):
                raise ResourceNotFound("Service not found or inactive.")
            duration = target.duration_minutes
        else:
            duration = _query_int(request, "duration")
        if not duration or duration <= 0:
            raise serializers.ValidationError({"detail": "Provide start/end, a service or a duration."})

        per_employee = self.engine.employees_availability(day, duration)
        return Response({
            "date": day.isoformat(),
            "duration_minutes": duration,
            "employees": [
                {"employee": employee_id, "slots": [s.as_dict() for s in slots]}
                for employee_id, slots in per_employee.items()
            ],
        })
