from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import EmployeeViewSet, EmployeeLoginView, EmployeeMeView, ChangePasswordView

router = DefaultRouter()
router.register(r"employees", EmployeeViewSet, basename="employee")

urlpatterns = [
    path("auth/login/", EmployeeLoginView.as_view(), name="employee-login"),
    path("auth/me/", EmployeeMeView.as_view(), name="employee-me"),
    path("auth/change-password/", ChangePasswordView.as_view(), name="employee-change-password"),
    path("", include(router.urls)),
]
