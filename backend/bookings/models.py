from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class BookingQuerySet(models.QuerySet):
    def for_payment(self):
        """Load exactly what pricing and payment reconciliation read."""
        return self.select_related("room", "studio", "studio__owner", "musician")

    def visible_to(self, user):
        if user.is_platform_admin:
            return self
        if user.is_studio_owner:
            return self.filter(studio__owner=user)
        return self.filter(musician=user)


class Booking(models.Model):
    """Reservation of a studio room by a musician for a time window."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"
    STATUSES = [
        (PENDING, "Pending"),
        (CONFIRMED, "Confirmed"),
        (REJECTED, "Rejected"),
        (COMPLETED, "Completed"),
        (CANCELED, "Canceled"),
    ]
    PAYABLE_STATUSES = {PENDING, CONFIRMED}

    PAYMENT_PENDING = "PENDING"
    PAYMENT_SUCCEEDED = "SUCCEEDED"
    PAYMENT_FAILED = "FAILED"
    PAYMENT_STATUSES = [
        (PAYMENT_PENDING, "Pending"),
        (PAYMENT_SUCCEEDED, "Succeeded"),
        (PAYMENT_FAILED, "Failed"),
    ]

    studio = models.ForeignKey("studios.Studio", on_delete=models.CASCADE, related_name="bookings")
    room = models.ForeignKey(
        "studios.Room",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    musician = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    add_ons = models.ManyToManyField("studios.AddOn", blank=True, related_name="bookings")
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    status = models.CharField(max_length=12, choices=STATUSES, default=PENDING)
    is_paid = models.BooleanField(default=False)
    payment_intent_id = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    payment_status = models.CharField(max_length=12, choices=PAYMENT_STATUSES, default=PAYMENT_PENDING)
    total_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        ordering = ["-start_time", "id"]

    def __str__(self):
        return f"Booking {self.pk} ({self.status})"

    def clean(self):
        super().clean()
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValidationError({"end_time": "End time must be after the start time."})

    @property
    def is_payable(self) -> bool:
        return not self.is_paid and self.status in self.PAYABLE_STATUSES
