"""
authentication.py
-----------------
Bearer-token authentication for employees.

Tokens are HS256 JWTs (python-jose) carrying:
  - sub: employee id (string)
  - adm: admin flag at issue time
  - exp: expiry (JWT_EXPIRE_HOURS after issue)
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.utils import timezone
from jose import JWTError, jwt
from rest_framework import authentication, exceptions

from .models import Employee

logger = logging.getLogger(__name__)


def issue_token(employee: Employee) -> str:
    now = timezone.now()
    payload = {
        "sub": str(employee.pk),
        "adm": bool(employee.is_admin),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=settings.JWT_EXPIRE_HOURS)).timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise exceptions.AuthenticationFailed("Invalid or expired token.") from e


class EmployeeJWTAuthentication(authentication.BaseAuthentication):
    keyword = "Bearer"

    def authenticate(self, request):
        header = authentication.get_authorization_header(request).split()
        if not header or header[0].lower() != self.keyword.lower().encode():
            return None
        if len(header) != 2:
            raise exceptions.AuthenticationFailed("Invalid Authorization header.")

        payload = decode_token(header[1].decode())
        try:
            employee = Employee.objects.get(pk=int(payload.get("sub")), is_active=True)
        except (Employee.DoesNotExist, TypeError, ValueError):
            raise exceptions.AuthenticationFailed("Employee not found or inactive.")
        return employee, payload

    def authenticate_header(self, request):
        return self.keyword
