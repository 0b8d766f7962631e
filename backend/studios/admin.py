from django.contrib import admin

from .models import AddOn, Room, Studio


class RoomInline(admin.TabularInline):
    model = Room
    extra = 0


@admin.register(Studio)
class StudioAdmin(admin.ModelAdmin):
    list_display = ("name", "owner", "status", "is_active", "stripe_account_id", "charges_enabled")
    list_filter = ("status", "is_active", "charges_enabled")
    search_fields = ("name", "owner__email", "stripe_account_id")
    readonly_fields = ("created_at", "updated_at", "onboarding_link_url", "onboarding_expires_at")
    inlines = [RoomInline]


class AddOnInline(admin.TabularInline):
    model = AddOn
    extra = 0


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ("name", "studio", "hourly_rate", "capacity", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "studio__name")
    inlines = [AddOnInline]


@admin.register(AddOn)
class AddOnAdmin(admin.ModelAdmin):
    list_display = ("name", "room", "price", "available")
    list_filter = ("available",)
    search_fields = ("name", "room__name", "room__studio__name")
