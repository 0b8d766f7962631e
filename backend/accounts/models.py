from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    MUSICIAN = "MUSICIAN"
    STUDIO_OWNER = "STUDIO_OWNER"
    ADMIN = "ADMIN"
    ROLES = [
        (MUSICIAN, "Musician"),
        (STUDIO_OWNER, "Studio owner"),
        (ADMIN, "Admin"),
    ]

    display_name = models.CharField(max_length=120, blank=True)
    role = models.CharField(max_length=20, choices=ROLES, default=MUSICIAN)

    @property
    def is_musician(self) -> bool:
        return self.role == self.MUSICIAN

    @property
    def is_studio_owner(self) -> bool:
        return self.role == self.STUDIO_OWNER

    @property
    def is_platform_admin(self) -> bool:
        return self.is_superuser or self.role == self.ADMIN
