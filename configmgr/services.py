"""
services.py
-----------
Typed access to configmgr.SystemSetting rows.

Unset or unparseable values fall back to the caller's default, so a typo in the
admin never takes the booking flow down.
"""

import logging

from .models import SystemSetting

logger = logging.getLogger(__name__)

BOOKING_INTERVAL_MINUTES = "BOOKING_INTERVAL_MINUTES"
MAX_ADVANCE_BOOKING_DAYS = "MAX_ADVANCE_BOOKING_DAYS"
MIN_ADVANCE_BOOKING_HOURS = "MIN_ADVANCE_BOOKING_HOURS"

DEFAULTS = {
    BOOKING_INTERVAL_MINUTES: 15,
    MAX_ADVANCE_BOOKING_DAYS: 60,
    MIN_ADVANCE_BOOKING_HOURS: 0,
}


def get_setting(key: str, default: str | None = None) -> str | None:
    row = SystemSetting.objects.filter(key=key).first()
    return row.value if row else default


def get_int_setting(key: str, default: int | None = None, minimum: int = 0) -> int:
    """
    Read an integer setting.

    Falls back to `default` (or DEFAULTS[key]) when the row is missing, is not
    an integer, or is below `minimum`.
    """
    if default is None:
        default = DEFAULTS.get(key, 0)

    raw = get_setting(key)
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except (TypeError, ValueError):
        logger.warning("Setting %s has non-integer value %r; using %s", key, raw, default)
        return default
    if value < minimum:
        logger.warning("Setting %s=%s is below %s; using %s", key, value, minimum, default)
        return default
    return value


def set_setting(key: str, value, description: str = "") -> SystemSetting:
    row, _ = SystemSetting.objects.update_or_create(
        key=key,
        defaults={"value": str(value), **({"description": description} if description else {})},
    )
    return row


def booking_interval_minutes() -> int:
    return get_int_setting(BOOKING_INTERVAL_MINUTES, minimum=1)


def max_advance_booking_days() -> int:
    return get_int_setting(MAX_ADVANCE_BOOKING_DAYS, minimum=0)


def min_advance_booking_hours() -> int:
    return get_int_setting(MIN_ADVANCE_BOOKING_HOURS, minimum=0)
