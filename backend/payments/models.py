from django.db import models
from django.db.models import Q


class Payment(models.Model):
    """
    Append-only ledger row for one observed processor outcome.

    Each row settles exactly one booking or one membership. Rows are never
    updated; a later outcome for the same intent is a new row with a
    different status.
    """

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    STATUSES = [
        (PENDING, "Pending"),
        (SUCCEEDED, "Succeeded"),
        (FAILED, "Failed"),
    ]

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="payments",
        null=True,
        blank=True,
    )
    membership = models.ForeignKey(
        "memberships.Membership",
        on_delete=models.CASCADE,
        related_name="payments",
        null=True,
        blank=True,
    )
    stripe_payment_intent = models.CharField(max_length=200)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=10, default="usd")
    status = models.CharField(max_length=30, choices=STATUSES)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["stripe_payment_intent", "status"],
                name="payment_unique_intent_status",
            ),
            models.CheckConstraint(
                condition=(
                    Q(booking__isnull=False, membership__isnull=True)
                    | Q(booking__isnull=True, membership__isnull=False)
                ),
                name="payment_settles_booking_xor_membership",
            ),
        ]

    def __str__(self):
        return f"{self.stripe_payment_intent} {self.status} {self.amount} {self.currency}"


class PaymentReconciliationIssue(models.Model):
    """A confirmed processor payment that could not be applied locally."""

    stripe_payment_intent = models.CharField(max_length=200, db_index=True)
    reason = models.TextField()
    payload = models.JSONField(default=dict, blank=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "id"]

    def __str__(self):
        return f"Issue for {self.stripe_payment_intent}"

    @property
    def is_resolved(self) -> bool:
        return self.resolved_at is not None
