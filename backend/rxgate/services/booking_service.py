"""
Consultation and appointment bookings. Customers create them in `pending`;
admins move appointments through the booking statuses.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rxgate.errors import PersistFailed
from rxgate.models.models import Appointment, Consultation, BOOKING_STATUSES

logger = logging.getLogger("rxgate.bookings")


def create_booking(session: Session, booking):
    """Insert a Consultation or Appointment."""
    try:
        session.add(booking)
        session.commit()
    except SQLAlchemyError as exc:
        logger.error("%s insert failed: %s", type(booking).__name__, exc)
        session.rollback()
        raise PersistFailed("Failed to save your booking. Please try again.") from exc

    logger.info("%s %s booked", type(booking).__name__, booking.id)
    return booking


def book_consultation(session: Session, user_id: int, contact: str,
                      preferred_time: str = None, notes: str = None) -> Consultation:
    return create_booking(session, Consultation(
        user_id=user_id,
        contact=contact,
        preferred_time=preferred_time,
        notes=notes,
    ))


def book_appointment(session: Session, patient_id: int, contact: str,
                     preferred_time: str = None, appointment_type: str = None,
                     notes: str = None) -> Appointment:
    appointment = Appointment(
        patient_id=patient_id,
        contact=contact,
        preferred_time=preferred_time,
        notes=notes,
    )
    if appointment_type:
        appointment.appointment_type = appointment_type
    return create_booking(session, appointment)


def update_appointment_status(session: Session, appointment: Appointment, status: str) -> Appointment:
    if status not in BOOKING_STATUSES:
        raise ValueError(f"Invalid appointment status. Allowed: {', '.join(BOOKING_STATUSES)}")
    appointment.status = status
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise PersistFailed() from exc
    logger.info("Appointment %s -> %s", appointment.id, status)
    return appointment
