from django.db import models
from django.utils import timezone


class MembershipQuerySet(models.QuerySet):
    def for_activation(self):
        return self.select_related("studio", "studio__owner")

    def currently_active(self, now=None):
        return self.filter(status=Membership.ACTIVE, end_date__gt=now or timezone.now())


class Membership(models.Model):
    """A studio's paid subscription to the marketplace."""

    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"
    PLANS = [
        (MONTHLY, "Monthly"),
        (YEARLY, "Yearly"),
    ]

    INACTIVE = "INACTIVE"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    STATUSES = [
        (INACTIVE, "Inactive"),
        (ACTIVE, "Active"),
        (EXPIRED, "Expired"),
    ]

    studio = models.ForeignKey("studios.Studio", on_delete=models.CASCADE, related_name="memberships")
    plan = models.CharField(max_length=10, choices=PLANS)
    status = models.CharField(max_length=10, choices=STATUSES, default=INACTIVE)
    start_date = models.DateTimeField(null=True, blank=True)
    end_date = models.DateTimeField(null=True, blank=True)
    payment_id = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = MembershipQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "id"]

    def __str__(self):
        return f"{self.studio} {self.plan} ({self.status})"
