from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import User


@admin.register(User)
class StudioConnectUserAdmin(UserAdmin):
    list_display = ("email", "display_name", "role", "is_active", "is_staff")
    list_filter = ("role", "is_active", "is_staff")
    fieldsets = UserAdmin.fieldsets + (("StudioConnect", {"fields": ("display_name", "role")}),)
