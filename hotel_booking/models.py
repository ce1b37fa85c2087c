from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class RoomType(models.Model):
    name = models.CharField(max_length=50, unique=True)
    base_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    # feature name -> included, e.g. {"freeWifi": True, "miniBar": False}
    features = models.JSONField(default=dict, blank=True)

    def __str__(self):
        return self.name

    def clean(self):
        if not isinstance(self.features, dict):
            raise ValidationError({"features": "Features must be a mapping of feature name to boolean."})
        for key, value in self.features.items():
            if not isinstance(key, str) or not key.strip():
                raise ValidationError({"features": "Feature names must be non-empty strings."})
            if not isinstance(value, bool):
                raise ValidationError({"features": f"Feature '{key}' must be true or false."})

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)


class Room(models.Model):
    room_number = models.CharField(max_length=20)
    floor = models.PositiveSmallIntegerField()
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    capacity = models.PositiveIntegerField(default=1)
    # administrative toggle, independent of bookings
    available = models.BooleanField(default=True)
    room_type = models.ForeignKey(RoomType, on_delete=models.PROTECT, related_name="rooms")

    class Meta:
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(fields=["floor", "room_number"], name="room_number_unique_per_floor"),
        ]

    def __str__(self):
        return f"Room {self.room_number}"


class Guest(models.Model):
    full_name = models.CharField(max_length=255)
    # stored lowercased, see services.normalize_email
    email = models.EmailField(max_length=255, unique=True)
    phone = models.CharField(max_length=20)
    address = models.CharField(max_length=500)
    special_requests = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.full_name} <{self.email}>"


class Booking(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending"
        CONFIRMED = "confirmed"
        CANCELLED = "cancelled"
        COMPLETED = "completed"

    class PaymentMethod(models.TextChoices):
        GCASH = "gcash", "GCash"
        PAYPAL = "paypal", "PayPal"

    reference = models.CharField(max_length=8, unique=True, editable=False)
    room = models.ForeignKey(Room, on_delete=models.CASCADE, related_name="bookings")
    guest = models.ForeignKey(Guest, on_delete=models.SET_NULL, null=True, blank=True, related_name="bookings")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    check_in = models.DateField()
    check_out = models.DateField()  # exclusive
    adults = models.PositiveSmallIntegerField(validators=[MinValueValidator(1)])
    children = models.PositiveSmallIntegerField(default=0)
    total_price = models.DecimalField(max_digits=10, decimal_places=2)
    # contact details as submitted with the booking; later guest edits don't touch it
    guest_info = models.JSONField()
    payment_method = models.CharField(max_length=10, choices=PaymentMethod.choices)
    payment_proof = models.CharField(max_length=255)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F("check_in")),
                name="booking_check_out_after_check_in",
            ),
            models.CheckConstraint(
                condition=models.Q(adults__gte=1),
                name="booking_at_least_one_adult",
            ),
        ]
        indexes = [
            models.Index(fields=["room", "check_in", "check_out"], name="booking_room_stay_idx"),
            models.Index(fields=["status"], name="booking_status_idx"),
        ]

    def __str__(self):
        return f"Booking {self.reference}"

    @property
    def nights(self):
        return max(1, (self.check_out - self.check_in).days)

    @property
    def can_cancel(self):
        """Whether the guest may still cancel this booking themselves."""
        return self.status == self.Status.PENDING and self.check_in > timezone.localdate()
