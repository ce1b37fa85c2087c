import os
import shutil
import tempfile
from datetime import date
from decimal import Decimal

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings

from hotel_booking import services
from hotel_booking.models import Booking, Room, RoomType
from hotel_booking.storage import PROOF_NAMESPACE

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class TempMediaMixin:
    """Point MEDIA_ROOT at a throwaway directory for each test."""

    def setUp(self):
        super().setUp()
        self.media_root = tempfile.mkdtemp()
        media_override = override_settings(MEDIA_ROOT=self.media_root)
        media_override.enable()
        self.addCleanup(media_override.disable)
        self.addCleanup(shutil.rmtree, self.media_root, True)

    def stored_proofs(self):
        folder = os.path.join(self.media_root, PROOF_NAMESPACE)
        if not os.path.isdir(folder):
            return []
        return sorted(os.listdir(folder))


def proof_file(name="proof.png", content=PNG_BYTES, content_type="image/png"):
    return SimpleUploadedFile(name, content, content_type=content_type)


def make_room(room_number="1011", floor=1, price="2500.00", capacity=3, available=True, type_name="Standard"):
    room_type, _ = RoomType.objects.get_or_create(
        name=type_name,
        defaults={"base_price": Decimal(price), "features": {"freeWifi": True, "workDesk": True}},
    )
    return Room.objects.create(
        room_number=room_number,
        floor=floor,
        price=Decimal(price),
        capacity=capacity,
        available=available,
        room_type=room_type,
    )


def guest_details(email="juan@example.com", phone="09171234567", **overrides):
    data = {
        "full_name": "Juan Dela Cruz",
        "email": email,
        "phone": phone,
        "address": "12 Mabini St, Manila",
        "special_requests": "Late check-in",
    }
    data.update(overrides)
    return services.GuestDetails(**data)


def booking_request(room, check_in=date(2025, 6, 1), check_out=date(2025, 6, 3), adults=2, children=0,
                    guest=None, user_id=None, payment_method="gcash", payment_proof="default"):
    return services.BookingRequest(
        room_id=room.pk,
        check_in=check_in,
        check_out=check_out,
        adults=adults,
        children=children,
        guest=guest or guest_details(),
        payment_method=payment_method,
        payment_proof=proof_file() if payment_proof == "default" else payment_proof,
        user_id=user_id,
    )


def make_booking(room, check_in, check_out, status=Booking.Status.PENDING, user=None, reference=None):
    """Insert a booking row directly, bypassing the service."""
    return Booking.objects.create(
        reference=reference or services.generate_reference(),
        room=room,
        user=user,
        check_in=check_in,
        check_out=check_out,
        adults=1,
        total_price=room.price * max(1, (check_out - check_in).days),
        guest_info=guest_details().as_snapshot(),
        payment_method=Booking.PaymentMethod.PAYPAL,
        payment_proof=f"{PROOF_NAMESPACE}/existing.pdf",
        status=status,
    )
