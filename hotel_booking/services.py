"""Room availability, guest reconciliation and the booking lifecycle."""

from __future__ import annotations

import logging
import string
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from django.core.files.uploadedfile import UploadedFile
from django.db import IntegrityError, transaction
from django.db.models import Exists, OuterRef, Q
from django.utils import timezone
from django.utils.crypto import get_random_string

from .errors import (
    BookingNotFoundError,
    CancellationNotAllowedError,
    InvalidRangeError,
    RoomNotFoundError,
    RoomUnavailableError,
    ValidationError,
)
from .models import Booking, Guest, Room
from .storage import discard_proof, store_proof, validate_proof

logger = logging.getLogger(__name__)

REFERENCE_LENGTH = 8
REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
REFERENCE_ATTEMPTS = 5
GUEST_INFO_FIELDS = ("full_name", "email", "phone", "address", "special_requests")


@dataclass
class GuestDetails:
    full_name: str
    email: str
    phone: str
    address: str
    special_requests: str = ""

    def as_snapshot(self) -> dict:
        return {
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "special_requests": self.special_requests or "",
        }


@dataclass
class BookingRequest:
    room_id: int
    check_in: date
    check_out: date
    adults: int
    guest: GuestDetails
    payment_method: str
    payment_proof: Optional[UploadedFile]
    children: int = 0
    user_id: Optional[int] = None


# ---------- pricing ----------

def count_nights(check_in: date, check_out: date) -> int:
    return max(1, (check_out - check_in).days)


def calculate_total_price(room: Room, check_in: date, check_out: date) -> Decimal:
    return Decimal(room.price) * count_nights(check_in, check_out)


def validate_stay(check_in: date, check_out: date, adults: int, children: int = 0) -> None:
    if check_out <= check_in:
        raise InvalidRangeError()
    if adults < 1:
        raise ValidationError("At least one adult is required.", field="adults")
    if children < 0:
        raise ValidationError("Children cannot be negative.", field="children")


# ---------- availability ----------

def blocking_bookings(check_in: date, check_out: date):
    """Bookings that hold a room for at least one night of the range.

    Stays are half-open, so a booking checking out on ``check_in`` does not
    block. Cancelled bookings never block.
    """
    return Booking.objects.filter(
        check_in__lt=check_out,
        check_out__gt=check_in,
    ).exclude(status=Booking.Status.CANCELLED)


def list_rooms():
    return Room.objects.select_related("room_type").order_by("id")


def find_available_rooms(check_in: date, check_out: date, adults: int, children: int = 0) -> list[Room]:
    validate_stay(check_in, check_out, adults, children)
    overlap = Exists(blocking_bookings(check_in, check_out).filter(room=OuterRef("pk")))
    rooms = (
        list_rooms()
        .annotate(has_overlap=overlap)
        .filter(has_overlap=False, available=True, capacity__gte=adults + children)
    )
    return list(rooms)


def ensure_room_can_host(room: Room, check_in: date, check_out: date, guests: int, *, exclude_booking_id=None) -> None:
    if not room.available:
        raise RoomUnavailableError("Room is not open for booking.")
    if room.capacity < guests:
        raise RoomUnavailableError(f"Room {room.room_number} sleeps at most {room.capacity} guests.")
    overlapping = blocking_bookings(check_in, check_out).filter(room=room)
    if exclude_booking_id is not None:
        overlapping = overlapping.exclude(pk=exclude_booking_id)
    if overlapping.exists():
        raise RoomUnavailableError()


# ---------- guests ----------

def normalize_email(email: str) -> str:
    return email.strip().lower()


def upsert_guest(email: str, *, full_name: str, phone: str, address: str, special_requests: str = "") -> Guest:
    """Create the guest for ``email`` or refresh the contact details of the existing one."""
    guest, created = Guest.objects.update_or_create(
        email=normalize_email(email),
        defaults={
            "full_name": full_name,
            "phone": phone,
            "address": address,
            "special_requests": special_requests or "",
        },
    )
    logger.debug("Guest %s %s", guest.pk, "created" if created else "updated")
    return guest


# ---------- bookings ----------

def generate_reference() -> str:
    return get_random_string(REFERENCE_LENGTH, allowed_chars=REFERENCE_ALPHABET)


def _insert_booking(**fields) -> Booking:
    for attempt in range(1, REFERENCE_ATTEMPTS + 1):
        reference = generate_reference()
        try:
            with transaction.atomic():
                return Booking.objects.create(reference=reference, **fields)
        except IntegrityError:
            if attempt == REFERENCE_ATTEMPTS or not Booking.objects.filter(reference=reference).exists():
                raise
            logger.warning("Booking reference %s already taken, retrying", reference)


def create_booking(request: BookingRequest) -> Booking:
    validate_stay(request.check_in, request.check_out, request.adults, request.children)
    if request.payment_method not in Booking.PaymentMethod.values:
        raise ValidationError("Payment method must be gcash or paypal.", field="payment_method")
    validate_proof(request.payment_proof)

    stored_path = None
    try:
        with transaction.atomic():
            try:
                room = Room.objects.select_for_update().get(pk=request.room_id)
            except Room.DoesNotExist:
                raise RoomNotFoundError(f"Room {request.room_id} does not exist.")

            # re-checked under the room lock so concurrent requests can't double-book
            ensure_room_can_host(room, request.check_in, request.check_out, request.adults + request.children)

            total_price = calculate_total_price(room, request.check_in, request.check_out)
            guest = upsert_guest(
                request.guest.email,
                full_name=request.guest.full_name,
                phone=request.guest.phone,
                address=request.guest.address,
                special_requests=request.guest.special_requests,
            )
            stored_path = store_proof(request.payment_proof)

            booking = _insert_booking(
                room=room,
                guest=guest,
                user_id=request.user_id,
                check_in=request.check_in,
                check_out=request.check_out,
                adults=request.adults,
                children=request.children,
                total_price=total_price,
                guest_info=request.guest.as_snapshot(),
                payment_method=request.payment_method,
                payment_proof=stored_path,
                status=Booking.Status.PENDING,
            )
    except Exception:
        discard_proof(stored_path)
        raise

    logger.info(
        "Booking %s created for room %s (%s to %s, total %s)",
        booking.reference, room.room_number, booking.check_in, booking.check_out, booking.total_price,
    )
    return booking


def get_booking_details(reference: str, user_id: Optional[int] = None) -> Booking:
    bookings = Booking.objects.select_related("room__room_type", "guest", "user")
    if user_id is not None:
        bookings = bookings.filter(user_id=user_id)
    try:
        return bookings.get(reference=reference)
    except Booking.DoesNotExist:
        raise BookingNotFoundError()


def list_user_bookings(user_id: int):
    return (
        Booking.objects.select_related("room__room_type", "guest", "user")
        .filter(user_id=user_id)
        .order_by("-created_at", "-id")
    )


def booking_summary(user_id: int) -> dict:
    today = timezone.localdate()
    bookings = Booking.objects.filter(user_id=user_id)
    confirmed = Q(status=Booking.Status.CONFIRMED)
    return {
        "pending": bookings.filter(status=Booking.Status.PENDING).count(),
        "active": bookings.filter(confirmed, check_out__gte=today).count(),
        "completed": bookings.filter(
            Q(status=Booking.Status.COMPLETED) | (confirmed & Q(check_out__lt=today))
        ).count(),
        "cancelled": bookings.filter(status=Booking.Status.CANCELLED).count(),
        "recent": list(list_user_bookings(user_id)[:5]),
    }


@transaction.atomic
def cancel_booking(reference: str, user_id: Optional[int]) -> Booking:
    """Guest self-service cancellation of a pending, future booking."""
    try:
        booking = Booking.objects.select_for_update().get(reference=reference)
    except Booking.DoesNotExist:
        raise BookingNotFoundError()

    if user_id is None or booking.user_id != user_id:
        logger.warning("User %s tried to cancel booking %s they do not own", user_id, reference)
        raise CancellationNotAllowedError("You can only cancel your own bookings.")
    if booking.status != Booking.Status.PENDING:
        raise CancellationNotAllowedError(f"Only pending bookings can be cancelled (this one is {booking.status}).")
    if booking.check_in <= timezone.localdate():
        raise CancellationNotAllowedError("Cannot cancel bookings with check-in dates in the past.")

    booking.status = Booking.Status.CANCELLED
    booking.save(update_fields=["status", "updated_at"])
    logger.info("Booking %s cancelled by user %s", reference, user_id)
    return booking


def update_booking(reference: str, changes: dict, payment_proof: Optional[UploadedFile] = None) -> Booking:
    """Administrative edit of a booking.

    ``changes`` may carry room_id, check_in, check_out, adults, children,
    total_price, status, payment_method and a partial guest_info mapping.
    Any status may be set. Unless the booking ends up cancelled, the room is
    re-checked whenever the stay or party size changes or a cancelled booking
    is reopened. A replacement proof is stored before the row is
    touched and the previous file is removed once the update has committed.
    """
    new_path = store_proof(payment_proof) if payment_proof else None
    try:
        with transaction.atomic():
            try:
                booking = Booking.objects.select_for_update().get(reference=reference)
            except Booking.DoesNotExist:
                raise BookingNotFoundError()

            room_id = changes.get("room_id", booking.room_id)
            try:
                room = Room.objects.select_for_update().get(pk=room_id)
            except Room.DoesNotExist:
                raise RoomNotFoundError(f"Room {room_id} does not exist.")

            check_in = changes.get("check_in", booking.check_in)
            check_out = changes.get("check_out", booking.check_out)
            adults = changes.get("adults", booking.adults)
            children = changes.get("children", booking.children)
            validate_stay(check_in, check_out, adults, children)

            status = changes.get("status", booking.status)
            if status not in Booking.Status.values:
                raise ValidationError(f"Unknown status {status}.", field="status")
            payment_method = changes.get("payment_method", booking.payment_method)
            if payment_method not in Booking.PaymentMethod.values:
                raise ValidationError("Payment method must be gcash or paypal.", field="payment_method")

            stay_changed = (
                room.pk != booking.room_id
                or check_in != booking.check_in
                or check_out != booking.check_out
            )
            reopened = booking.status == Booking.Status.CANCELLED and status != Booking.Status.CANCELLED
            party_changed = adults + children != booking.adults + booking.children
            if status != Booking.Status.CANCELLED and (stay_changed or reopened or party_changed):
                ensure_room_can_host(room, check_in, check_out, adults + children, exclude_booking_id=booking.pk)

            if changes.get("total_price") is not None:
                booking.total_price = changes["total_price"]
            elif stay_changed:
                booking.total_price = calculate_total_price(room, check_in, check_out)

            if changes.get("guest_info"):
                snapshot = dict(booking.guest_info or {})
                snapshot.update({k: v for k, v in changes["guest_info"].items() if k in GUEST_INFO_FIELDS})
                booking.guest_info = snapshot

            booking.room = room
            booking.check_in = check_in
            booking.check_out = check_out
            booking.adults = adults
            booking.children = children
            booking.status = status
            booking.payment_method = payment_method
            if new_path:
                old_path = booking.payment_proof
                booking.payment_proof = new_path
                transaction.on_commit(lambda: discard_proof(old_path))
            booking.save()
    except Exception:
        discard_proof(new_path)
        raise

    logger.info("Booking %s updated (status %s)", reference, booking.status)
    return booking


@transaction.atomic
def delete_booking(reference: str) -> None:
    try:
        booking = Booking.objects.select_for_update().get(reference=reference)
    except Booking.DoesNotExist:
        raise BookingNotFoundError()
    proof = booking.payment_proof
    booking.delete()
    transaction.on_commit(lambda: discard_proof(proof))
    logger.info("Booking %s deleted", reference)
