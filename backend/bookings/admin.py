from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "studio", "room", "musician", "start_time", "status", "is_paid", "payment_status", "total_price")
    list_filter = ("status", "payment_status", "is_paid")
    search_fields = ("studio__name", "musician__email", "payment_intent_id")
    readonly_fields = ("payment_intent_id", "created_at", "updated_at")
    filter_horizontal = ("add_ons",)
