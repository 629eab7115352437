# staff/views.py
#
# Purpose:
# - Employee login (JWT), "who am I", password change.
# - Admin CRUD for employees. DELETE deactivates instead of removing the row.
#
import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from .authentication import issue_token
from .models import Employee
from .permissions import IsAdminOrBootstrap, IsEmployee
from .serializers import ChangePasswordSerializer, EmployeeSerializer, LoginSerializer

logger = logging.getLogger(__name__)


class EmployeeLoginView(APIView):
    """
    POST /api/staff/auth/login/
    { "email": "anna@example.com", "password": "..." }
    Returns { "token": "<jwt>", "employee": {...} }.
    """
    authentication_classes = []

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data["email"].strip().lower()
        password = serializer.validated_data["password"]

        employee = Employee.objects.filter(email__iexact=email, is_active=True).first()
        if employee is None or not employee.check_password(password):
            logger.info("Failed login attempt for %s", email)
            return Response({"detail": "Invalid credentials."}, status=status.HTTP_401_UNAUTHORIZED)

        logger.info("Employee %s logged in", employee.pk)
        return Response({
            "token": issue_token(employee),
            "employee": EmployeeSerializer(employee).data,
        })


class EmployeeMeView(APIView):
    permission_classes = [IsEmployee]

    def get(self, request):
        if not isinstance(request.user, Employee):
            return Response({"detail": "Not an employee session."}, status=status.HTTP_400_BAD_REQUEST)
        return Response(EmployeeSerializer(request.user).data)


class ChangePasswordView(APIView):
    permission_classes = [IsEmployee]

    def post(self, request):
        employee = request.user
        if not isinstance(employee, Employee):
            return Response({"detail": "Not an employee session."}, status=status.HTTP_400_BAD_REQUEST)

        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        if not employee.check_password(serializer.validated_data["current_password"]):
            return Response(
                {"current_password": ["Current password is incorrect."]},
                status=status.HTTP_400_BAD_REQUEST,
            )

        employee.set_password(serializer.validated_data["new_password"])
        employee.save(update_fields=["password", "updated_at"])
        logger.info("Employee %s changed password", employee.pk)
        return Response({"detail": "Password changed."})


class EmployeeViewSet(viewsets.ModelViewSet):
    serializer_class = EmployeeSerializer
    permission_classes = [IsAdminOrBootstrap]

    def get_queryset(self):
        qs = Employee.objects.all().order_by("name")
        active_only = self.request.query_params.get("active_only", "true").lower() != "false"
        if self.action == "list" and active_only:
            qs = qs.filter(is_active=True)
        return qs

    def perform_destroy(self, instance):
        instance.is_active = False
        instance.save(update_fields=["is_active", "updated_at"])
        logger.info("Employee %s deactivated", instance.pk)

    @action(detail=True, methods=["patch"], url_path="toggle-active")
    def toggle_active(self, request, pk=None):
        employee = self.get_object()
        employee.is_active = not employee.is_active
        employee.save(update_fields=["is_active", "updated_at"])
        logger.info("Employee %s is_active=%s", employee.pk, employee.is_active)
        return Response(self.get_serializer(employee).data)
