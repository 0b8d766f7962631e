from django.contrib import admin

from .models import Membership


@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    list_display = ("studio", "plan", "status", "start_date", "end_date", "payment_id")
    list_filter = ("plan", "status")
    search_fields = ("studio__name", "payment_id")
    readonly_fields = ("created_at", "updated_at")
