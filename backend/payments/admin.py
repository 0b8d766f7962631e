from django.contrib import admin
from django.utils import timezone

from .models import Payment, PaymentReconciliationIssue


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("stripe_payment_intent", "status", "amount", "currency", "booking", "membership", "created_at")
    list_filter = ("status", "currency")
    search_fields = ("stripe_payment_intent",)
    readonly_fields = ("booking", "membership", "stripe_payment_intent", "amount", "currency", "status", "created_at")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(PaymentReconciliationIssue)
class PaymentReconciliationIssueAdmin(admin.ModelAdmin):
    list_display = ("stripe_payment_intent", "reason", "created_at", "resolved_at")
    list_filter = ("resolved_at",)
    search_fields = ("stripe_payment_intent", "reason")
    readonly_fields = ("stripe_payment_intent", "reason", "payload", "created_at")
    actions = ["mark_resolved"]

    @admin.action(description="Mark selected issues as resolved")
    def mark_resolved(self, request, queryset):
        updated = queryset.filter(resolved_at__isnull=True).update(resolved_at=timezone.now())
        self.message_user(request, f"{updated} issue(s) marked as resolved.")
