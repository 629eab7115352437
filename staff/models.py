# staff/models.py
#
# Purpose:
# - Employees (stylists/barbers) who are assigned to bookings and who log in
#   to the admin surface.
#
# Notes:
# - Employees are not Django auth users; they authenticate with a JWT issued by
#   staff.views.EmployeeLoginView. `is_authenticated` lets DRF treat an Employee
#   as request.user.
# - Deleting through the API deactivates (is_active=False) so historical
#   bookings keep their employee.
#
from django.contrib.auth.hashers import check_password, make_password
from django.db import models


class Employee(models.Model):
    name = models.CharField(max_length=200)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=100, blank=True)
    specialty = models.CharField(max_length=200, blank=True)
    is_active = models.BooleanField(default=True)
    is_admin = models.BooleanField(default=False)
    password = models.CharField(max_length=128, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # DRF principal protocol
    is_authenticated = True
    is_anonymous = False

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    def set_password(self, raw_password: str) -> None:
        self.password = make_password(raw_password)

    def check_password(self, raw_password: str) -> bool:
        if not self.password:
            return False
        return check_password(raw_password, self.password)
