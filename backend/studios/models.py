from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Studio(models.Model):
    STATUS_PENDING = "PENDING"
    STATUS_APPROVED = "APPROVED"
    STATUS_REJECTED = "REJECTED"
    STATUSES = [
        (STATUS_PENDING, "Pending review"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
    ]

    owner = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="studio",
    )
    name = models.CharField(max_length=100)
    city = models.CharField(max_length=120, blank=True)
    address = models.CharField(max_length=200, blank=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    status = models.CharField(max_length=12, choices=STATUSES, default=STATUS_PENDING)
    stripe_account_id = models.CharField(max_length=255, blank=True)
    charges_enabled = models.BooleanField(default=False)
    payouts_enabled = models.BooleanField(default=False)
    details_submitted = models.BooleanField(default=False)
    onboarding_link_url = models.URLField(blank=True)
    onboarding_expires_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name", "id"]

    def __str__(self):
        return self.name

    @property
    def has_payout_destination(self) -> bool:
        return bool(self.stripe_account_id)


class Room(models.Model):
    studio = models.ForeignKey(Studio, on_delete=models.CASCADE, related_name="rooms")
    name = models.CharField(max_length=100)
    capacity = models.PositiveIntegerField(default=1)
    hourly_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0)],
    )
    min_hours = models.PositiveIntegerField(default=1)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["studio", "name"]

    def __str__(self):
        return f"{self.name} @ {self.studio.name}"


class AddOn(models.Model):
    """Rentable extra (instrument, gear) charged at a flat price per booking."""

    room = models.ForeignKey(Room, on_delete=models.CASCADE, related_name="add_ons")
    name = models.CharField(max_length=50)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    available = models.BooleanField(default=True)

    class Meta:
        ordering = ["room", "name"]
        unique_together = ("room", "name")

    def __str__(self):
        return f"{self.name} ({self.room.name})"
