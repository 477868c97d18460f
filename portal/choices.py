from django.db import models


class AppointmentStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    SCHEDULED = 'scheduled', 'Scheduled'
    CONFIRMED = 'confirmed', 'Confirmed'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


# (badge variant, badge colour, can edit, can delete)
STATUS_DISPLAY = {
    AppointmentStatus.PENDING: ('outline', 'bg-yellow-500', True, True),
    AppointmentStatus.SCHEDULED: ('outline', 'bg-gray-500', True, True),
    AppointmentStatus.CONFIRMED: ('default', 'bg-green-500', True, True),
    AppointmentStatus.COMPLETED: ('secondary', 'bg-blue-500', False, False),
    AppointmentStatus.CANCELLED: ('destructive', 'bg-red-500', False, True),
}

UNKNOWN_STATUS_DISPLAY = ('outline', 'bg-gray-500', True, True)

CENTER_STATUS_CHOICES = [
    (AppointmentStatus.PENDING.value, AppointmentStatus.PENDING.label),
    (AppointmentStatus.CONFIRMED.value, AppointmentStatus.CONFIRMED.label),
    (AppointmentStatus.COMPLETED.value, AppointmentStatus.COMPLETED.label),
    (AppointmentStatus.CANCELLED.value, AppointmentStatus.CANCELLED.label),
]

DASHBOARD_STATUS_CHOICES = [
    (AppointmentStatus.SCHEDULED.value, AppointmentStatus.SCHEDULED.label),
    (AppointmentStatus.CONFIRMED.value, AppointmentStatus.CONFIRMED.label),
    (AppointmentStatus.CANCELLED.value, AppointmentStatus.CANCELLED.label),
]


def status_display(status):
    """Look up the display tuple for a raw backend status string."""
    try:
        return STATUS_DISPLAY[AppointmentStatus(status)]
    except ValueError:
        return UNKNOWN_STATUS_DISPLAY


def badge_variant(status) -> str:
    return status_display(status)[0]


def badge_color(status) -> str:
    return status_display(status)[1]


def can_edit(status) -> bool:
    return status_display(status)[2]


def can_delete(status) -> bool:
    return status_display(status)[3]


def choices_with_current(base, current):
    """Status choices widened to keep the appointment's present status selectable."""
    if not current or any(value == current for value, _ in base):
        return list(base)
    try:
        label = AppointmentStatus(current).label
    except ValueError:
        label = current.capitalize()
    return [(current, label)] + list(base)
