"""
Booking email notifications.

Notifications are advisory: the booking row is the source of truth, so every
dispatch goes through ``dispatch`` which logs and drops delivery failures.
"""

import html
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Protocol

import resend

from booking_api.core import config
from booking_api.models.booking import Booking
from booking_api.services.booking_state import BookingFor, BookingType
from booking_api.services.time_slots import format_clock_12

logger = logging.getLogger(__name__)


class NoticeKind(str, Enum):
    REQUEST_TO_PATIENT = 'request_to_patient'
    REQUEST_TO_DOCTOR = 'request_to_doctor'
    CONFIRMATION_TO_PATIENT = 'confirmation_to_patient'
    CONFIRMATION_TO_DOCTOR = 'confirmation_to_doctor'


@dataclass(frozen=True)
class Notice:
    kind: NoticeKind
    booking_id: int
    to: str
    subject: str
    html: str


class Notifier(Protocol):
    def notify(self, notice: Notice) -> None:
        ...


class ResendNotifier:
    """Sends notices through the Resend API."""

    def __init__(self, api_key: str, from_address: str):
        resend.api_key = api_key
        self.from_address = from_address

    def notify(self, notice: Notice) -> None:
        resend.Emails.send(
            {
                'from': self.from_address,
                'to': [notice.to],
                'subject': notice.subject,
                'html': notice.html,
            }
        )
        logger.info('Sent %s email for booking %s to %s', notice.kind.value, notice.booking_id, notice.to)


class LogNotifier:
    """Used when no email provider is configured."""

    def notify(self, notice: Notice) -> None:
        logger.info(
            'Email delivery not configured; %s for booking %s to %s not sent',
            notice.kind.value,
            notice.booking_id,
            notice.to,
        )


def dispatch(notifier: Notifier, notices: Iterable[Notice]) -> int:
    """Deliver each notice independently; returns how many went out."""
    sent = 0
    for notice in notices:
        if not notice.to:
            logger.debug('No recipient for %s on booking %s', notice.kind.value, notice.booking_id)
            continue
        try:
            notifier.notify(notice)
            sent += 1
        except Exception:
            logger.exception('Failed to send %s email for booking %s', notice.kind.value, notice.booking_id)
    return sent


def notify_booking(notifier: Notifier, build: Callable[[Booking], list[Notice]], booking: Booking) -> int:
    """Build and deliver the notices for ``booking``; a failure while building is logged and dropped."""
    try:
        notices = build(booking)
    except Exception:
        logger.exception('Failed to build %s notices for booking %s', getattr(build, '__name__', 'booking'), booking.id)
        return 0
    return dispatch(notifier, notices)


_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    global _notifier
    if _notifier is None:
        if config.NOTIFICATIONS_ENABLED and config.RESEND_API_KEY:
            _notifier = ResendNotifier(config.RESEND_API_KEY, config.EMAIL_FROM_ADDRESS)
        else:
            _notifier = LogNotifier()
    return _notifier


def patient_display_name(booking: Booking) -> str:
    if booking.booking_for == BookingFor.SOMEONE_ELSE.value:
        return (booking.guest_patient or {}).get('name') or 'Guest'
    return booking.patient.full_name if booking.patient else ''


def _details_html(booking: Booking, time_label: str) -> str:
    doctor = booking.doctor
    rows = [
        ('Doctor', doctor.full_name if doctor else ''),
        ('Clinic', doctor.clinic_name if doctor else ''),
        ('Clinic address', doctor.clinic_address if doctor else ''),
        ('Date', booking.slot_start.date().isoformat()),
        ('Time', time_label),
        ('Booking type', booking.booking_type),
        ('Visit type', booking.visit_type),
    ]
    if booking.booking_type == BookingType.HOME_VISIT.value:
        rows.append(('Home visit address', (booking.home_visit_address or {}).get('fullText', '')))

    items = ''.join(
        f'<li><strong>{html.escape(label)}:</strong> {html.escape(value or "")}</li>'
        for label, value in rows
        if value
    )
    return f'<ul>{items}</ul>'


def _guest_html(booking: Booking) -> str:
    guest = booking.guest_patient or {}
    fields = [
        ('Email', guest.get('email')),
        ('Phone', guest.get('phone')),
        ('Gender', guest.get('gender')),
        ('Date of birth', guest.get('dob')),
        ('Address', guest.get('address')),
        ('Postal code', guest.get('postalCode')),
        ('City', guest.get('city')),
    ]
    items = ''.join(
        f'<li>{html.escape(label)}: {html.escape(str(value))}</li>' for label, value in fields if value
    )
    return f'<p>Patient contact details:</p><ul>{items}</ul>' if items else ''


def request_notices(booking: Booking) -> list[Notice]:
    name = patient_display_name(booking)
    time_label = format_clock_12(booking.slot_start)
    details = _details_html(booking, time_label)
    account_email = booking.patient.email if booking.patient else ''

    to_patient = Notice(
        kind=NoticeKind.REQUEST_TO_PATIENT,
        booking_id=booking.id,
        to=booking.notify_email or account_email,
        subject='Your appointment request has been received',
        html=(
            f'<p>Hello {html.escape(name)},</p>'
            '<p>Your appointment request was sent to the doctor. '
            'You will receive another email once it is confirmed.</p>'
            f'{details}'
        ),
    )

    doctor_body = (
        f'<p>You have a new appointment request from {html.escape(name)} '
        f'(account {html.escape(account_email or "")}).</p>{details}'
    )
    if booking.booking_for == BookingFor.SOMEONE_ELSE.value:
        doctor_body += _guest_html(booking)

    to_doctor = Notice(
        kind=NoticeKind.REQUEST_TO_DOCTOR,
        booking_id=booking.id,
        to=booking.doctor.email if booking.doctor else '',
        subject='New appointment request',
        html=doctor_body,
    )
    return [to_patient, to_doctor]


def confirmation_notices(booking: Booking) -> list[Notice]:
    name = patient_display_name(booking)
    time_label = f'{format_clock_12(booking.slot_start)} - {format_clock_12(booking.slot_end)}'
    details = _details_html(booking, time_label)
    account_email = booking.patient.email if booking.patient else ''

    return [
        Notice(
            kind=NoticeKind.CONFIRMATION_TO_PATIENT,
            booking_id=booking.id,
            to=booking.notify_email or account_email,
            subject='Your appointment is confirmed',
            html=f'<p>Hello {html.escape(name)},</p><p>Your appointment has been confirmed.</p>{details}',
        ),
        Notice(
            kind=NoticeKind.CONFIRMATION_TO_DOCTOR,
            booking_id=booking.id,
            to=booking.doctor.email if booking.doctor else '',
            subject='Appointment confirmed',
            html=f'<p>You confirmed an appointment with {html.escape(name)}.</p>{details}',
        ),
    ]
