from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from accounts.models import User
from bookings.models import Booking
from memberships.models import Membership
from studios.models import AddOn, Room, Studio


SEED_PASSWORD = "StudioConnect123!"
SUPERUSER_EMAIL = "admin@studioconnect.test"
SUPERUSER_PASSWORD = "AdminStudioConnect123!"


class Command(BaseCommand):
    help = "Populate the local development database with sample data."

    def handle(self, *args, **options):
        if not settings.DEBUG:
            raise CommandError("Refusing to seed data while DEBUG is False.")

        with transaction.atomic():
            self.stdout.write(self.style.MIGRATE_HEADING("Creating users"))
            owner = self._ensure_user(
                email="owner@basementsound.test",
                first_name="Olivia",
                last_name="Owner",
                role=User.STUDIO_OWNER,
            )
            second_owner = self._ensure_user(
                email="owner@riverside.test",
                first_name="Rafa",
                last_name="Riverside",
                role=User.STUDIO_OWNER,
            )
            musician = self._ensure_user(
                email="musician@example.test",
                first_name="Mia",
                last_name="Musician",
                role=User.MUSICIAN,
            )

            self.stdout.write(self.style.MIGRATE_HEADING("Ensuring admin superuser"))
            self._ensure_superuser()

            self.stdout.write(self.style.MIGRATE_HEADING("Creating studios, rooms & add-ons"))
            basement = self._ensure_studio(
                owner,
                name="Basement Sound",
                city="Berlin",
                stripe_account_id="acct_dev_basement",
            )
            riverside = self._ensure_studio(second_owner, name="Riverside Rehearsal", city="Hamburg")

            live_room = self._ensure_room(basement, "Live Room", hourly_rate="20.00", capacity=6)
            vocal_booth = self._ensure_room(basement, "Vocal Booth", hourly_rate="12.50", capacity=2)
            self._ensure_room(riverside, "Hall A", hourly_rate="30.00", capacity=10)

            drum_kit = self._ensure_add_on(live_room, "Drum kit", "10.00")
            self._ensure_add_on(live_room, "Bass amp", "6.00")
            self._ensure_add_on(vocal_booth, "Condenser mic", "4.00")

            self.stdout.write(self.style.MIGRATE_HEADING("Creating memberships"))
            Membership.objects.filter(studio__in=[basement, riverside]).delete()
            now = timezone.now()
            Membership.objects.create(
                studio=basement,
                plan=Membership.MONTHLY,
                status=Membership.ACTIVE,
                start_date=now - timedelta(days=10),
                end_date=now + timedelta(days=20),
                payment_id="pi_dev_membership",
            )
            Membership.objects.create(
                studio=riverside,
                plan=Membership.MONTHLY,
                status=Membership.ACTIVE,
                start_date=now - timedelta(days=31),
                end_date=now - timedelta(days=1),
            )

            self.stdout.write(self.style.MIGRATE_HEADING("Creating bookings"))
            Booking.objects.filter(musician=musician).delete()
            start = (now + timedelta(days=2)).replace(hour=18, minute=0, second=0, microsecond=0)
            Booking.objects.create(
                studio=basement,
                room=live_room,
                musician=musician,
                start_time=start,
                end_time=start + timedelta(hours=2),
            )
            paid = Booking.objects.create(
                studio=basement,
                room=live_room,
                musician=musician,
                start_time=start + timedelta(days=7),
                end_time=start + timedelta(days=7, hours=3),
                status=Booking.CONFIRMED,
                is_paid=True,
                payment_status=Booking.PAYMENT_SUCCEEDED,
                payment_intent_id="pi_dev_paid",
                total_price=Decimal("70.00"),
            )
            paid.add_ons.set([drum_kit])

        self.stdout.write(self.style.SUCCESS("Development seed data created."))
        self.stdout.write(self.style.NOTICE(f"Sample login accounts use password: {SEED_PASSWORD}"))
        self.stdout.write(self.style.NOTICE(f"Admin superuser {SUPERUSER_EMAIL} password: {SUPERUSER_PASSWORD}"))
        self.stdout.write(self.style.NOTICE("Run `manage.py expire_memberships` to expire the Riverside membership."))

    def _ensure_user(self, email: str, first_name: str, last_name: str, role: str) -> User:
        user, created = User.objects.get_or_create(
            email=email,
            defaults={
                "username": email,
                "first_name": first_name,
                "last_name": last_name,
                "display_name": f"{first_name} {last_name}",
                "role": role,
            },
        )
        if created or not user.has_usable_password():
            user.set_password(SEED_PASSWORD)
            user.save(update_fields=["password"])
        if user.role != role:
            user.role = role
            user.save(update_fields=["role"])
        return user

    def _ensure_studio(self, owner: User, name: str, city: str, stripe_account_id: str = "") -> Studio:
        studio, created = Studio.objects.update_or_create(
            owner=owner,
            defaults={
                "name": name,
                "city": city,
                "status": Studio.STATUS_APPROVED,
                "is_active": True,
                "stripe_account_id": stripe_account_id,
            },
        )
        if created:
            self.stdout.write(self.style.NOTICE(f"Created studio {studio.name} for {owner.email}"))
        return studio

    def _ensure_room(self, studio: Studio, name: str, hourly_rate: str, capacity: int) -> Room:
        room, _ = Room.objects.update_or_create(
            studio=studio,
            name=name,
            defaults={"hourly_rate": Decimal(hourly_rate), "capacity": capacity},
        )
        return room

    def _ensure_add_on(self, room: Room, name: str, price: str) -> AddOn:
        add_on, _ = AddOn.objects.update_or_create(
            room=room,
            name=name,
            defaults={"price": Decimal(price), "available": True},
        )
        return add_on

    def _ensure_superuser(self) -> User:
        user, created = User.objects.get_or_create(
            email=SUPERUSER_EMAIL,
            defaults={
                "username": SUPERUSER_EMAIL,
                "first_name": "Admin",
                "last_name": "User",
                "display_name": "Admin User",
                "role": User.ADMIN,
                "is_staff": True,
                "is_superuser": True,
            },
        )
        flag_updates = {}
        if not user.is_staff:
            flag_updates["is_staff"] = True
        if not user.is_superuser:
            flag_updates["is_superuser"] = True
        if flag_updates:
            for attr, value in flag_updates.items():
                setattr(user, attr, value)
            user.save(update_fields=list(flag_updates.keys()))
        if created or not user.has_usable_password():
            user.set_password(SUPERUSER_PASSWORD)
            user.save(update_fields=["password"])
        return user
