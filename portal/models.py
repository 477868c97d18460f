"""
Read-only records parsed from backend JSON.

The portal owns no tables: centers, appointments and the session user all
live in the external API and are only rebuilt here for display.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from django.utils.dateparse import parse_date, parse_datetime

from . import choices

WEEKDAYS = [
    ('monday', 'Monday'),
    ('tuesday', 'Tuesday'),
    ('wednesday', 'Wednesday'),
    ('thursday', 'Thursday'),
    ('friday', 'Friday'),
    ('saturday', 'Saturday'),
    ('sunday', 'Sunday'),
]


def _parse_day(value) -> Optional[date]:
    if not value:
        return None
    value = str(value)
    try:
        dt = parse_datetime(value)
        if dt is not None:
            return dt.date()
        return parse_date(value.split('T')[0])
    except ValueError:
        return None


def _ref(data, key) -> dict:
    # populated references arrive as objects, unpopulated ones as bare ids
    value = (data or {}).get(key)
    return value if isinstance(value, dict) else {}


@dataclass
class OperatingHours:
    open: str = ''
    close: str = ''

    @classmethod
    def from_json(cls, data) -> 'OperatingHours':
        data = data or {}
        return cls(open=data.get('open') or '', close=data.get('close') or '')

    @property
    def is_closed(self) -> bool:
        return not self.open or not self.close

    def display(self) -> str:
        if self.is_closed:
            return 'Closed'
        return f"{self.open} - {self.close}"


@dataclass
class Address:
    street: str = ''
    city: str = ''
    state: str = ''
    zip_code: str = ''
    country: str = ''

    @classmethod
    def from_json(cls, data) -> 'Address':
        data = data or {}
        return cls(
            street=data.get('street', ''),
            city=data.get('city', ''),
            state=data.get('state', ''),
            zip_code=data.get('zipCode', ''),
            country=data.get('country', ''),
        )


@dataclass
class Contact:
    name: str = ''
    email: str = ''
    phone: str = ''

    @classmethod
    def from_json(cls, data) -> 'Contact':
        return cls(name=data.get('name', ''), email=data.get('email', ''), phone=data.get('phone', ''))


@dataclass
class DiagnosticCenter:
    id: str
    name: str
    description: str = ''
    address: Address = field(default_factory=Address)
    phone: str = ''
    email: str = ''
    operating_hours: dict = field(default_factory=dict)
    services: list = field(default_factory=list)
    is_active: bool = False
    rating: Optional[float] = None
    total_reviews: Optional[int] = None
    admin: Optional[Contact] = None

    @classmethod
    def from_json(cls, data) -> 'DiagnosticCenter':
        hours = data.get('operatingHours') or {}
        admin = _ref(data, 'adminId')
        return cls(
            id=data.get('_id', ''),
            name=data.get('name', ''),
            description=data.get('description') or '',
            address=Address.from_json(data.get('address')),
            phone=data.get('phone', ''),
            email=data.get('email', ''),
            operating_hours={key: OperatingHours.from_json(hours.get(key)) for key, _ in WEEKDAYS},
            services=list(data.get('services') or []),
            is_active=bool(data.get('isActive')),
            rating=data.get('rating'),
            total_reviews=data.get('totalReviews'),
            admin=Contact.from_json(admin) if admin else None,
        )

    @property
    def weekly_hours(self):
        """Seven (label, hours text) rows, Monday first."""
        return [
            (label, self.operating_hours.get(key, OperatingHours()).display())
            for key, label in WEEKDAYS
        ]


@dataclass
class Appointment:
    id: str
    status: str = ''
    appointment_date: Optional[date] = None
    appointment_date_raw: str = ''
    appointment_time: str = ''
    total_amount: Optional[float] = None
    notes: str = ''
    cancellation_reason: str = ''
    patient: Contact = field(default_factory=Contact)
    test_name: str = ''
    test_category: str = ''
    test_price: Optional[float] = None
    test_duration: Optional[int] = None
    center_name: str = ''
    center_address: Address = field(default_factory=Address)

    @classmethod
    def from_json(cls, data) -> 'Appointment':
        test = _ref(data, 'testId')
        center = _ref(data, 'diagnosticCenterId')
        raw_date = data.get('appointmentDate') or ''
        return cls(
            id=data.get('_id', ''),
            status=data.get('status', ''),
            appointment_date=_parse_day(raw_date),
            appointment_date_raw=raw_date,
            appointment_time=data.get('appointmentTime') or '',
            total_amount=data.get('totalAmount'),
            notes=data.get('notes') or '',
            cancellation_reason=data.get('cancellationReason') or '',
            patient=Contact.from_json(_ref(data, 'patientId')),
            test_name=test.get('name', ''),
            test_category=test.get('category', ''),
            test_price=test.get('price'),
            test_duration=test.get('duration'),
            center_name=center.get('name', ''),
            center_address=Address.from_json(center.get('address')),
        )

    @property
    def badge_variant(self) -> str:
        return choices.badge_variant(self.status)

    @property
    def badge_color(self) -> str:
        return choices.badge_color(self.status)

    @property
    def can_edit(self) -> bool:
        return choices.can_edit(self.status)

    @property
    def can_delete(self) -> bool:
        return choices.can_delete(self.status)


@dataclass
class SessionUser:
    id: str
    name: str = ''
    email: str = ''
    role: str = ''

    @classmethod
    def from_json(cls, data) -> 'SessionUser':
        return cls(
            id=str(data.get('id') or data.get('_id') or ''),
            name=data.get('name', ''),
            email=data.get('email', ''),
            role=data.get('role', ''),
        )

    def to_json(self) -> dict:
        return {'id': self.id, 'name': self.name, 'email': self.email, 'role': self.role}
