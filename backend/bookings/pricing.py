from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from django.conf import settings

from core.exceptions import InvalidTimeRange, RoomNotFound
from studios.models import AddOn, Room

SECONDS_PER_HOUR = Decimal(3600)
CENTS = Decimal("0.01")


def commission_rate() -> Decimal:
    return Decimal(str(settings.PLATFORM_COMMISSION_RATE))


def to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricingResult:
    room: Room
    hours: Decimal
    room_cost: Decimal
    add_on_cost: Decimal
    room_commission: Decimal
    room_owner_amount: Decimal
    total_price: Decimal
    add_ons: tuple[AddOn, ...] = ()

    @property
    def total_cents(self) -> int:
        return to_cents(self.total_price)

    @property
    def commission_cents(self) -> int:
        return to_cents(self.room_commission)

    def breakdown_metadata(self) -> dict[str, str]:
        return {
            "room_commission": str(round_money(self.room_commission)),
            "room_owner_amount": str(round_money(self.room_owner_amount)),
            "add_on_amount": str(round_money(self.add_on_cost)),
        }


def hours_between(start_time: datetime, end_time: datetime) -> Decimal:
    seconds = Decimal(str((end_time - start_time).total_seconds()))
    return seconds / SECONDS_PER_HOUR


def calculate_price(
    room_id: int,
    start_time: datetime,
    end_time: datetime,
    add_on_ids: Iterable[int] = (),
) -> PricingResult:
    """
    Price a room for a time window plus any selected add-ons.

    Add-ons are flat-priced and carry no platform commission. Ids that do not
    belong to an available add-on of the room are ignored.
    """

    if end_time <= start_time:
        raise InvalidTimeRange()

    try:
        room = Room.objects.select_related("studio").get(pk=room_id)
    except Room.DoesNotExist:
        raise RoomNotFound()

    hours = hours_between(start_time, end_time)
    room_cost = room.hourly_rate * hours

    add_on_ids = list(add_on_ids or [])
    add_ons: tuple[AddOn, ...] = ()
    if add_on_ids:
        add_ons = tuple(
            AddOn.objects.filter(room=room, available=True, pk__in=add_on_ids).order_by("pk")
        )
    add_on_cost = sum((add_on.price for add_on in add_ons), Decimal("0"))

    rate = commission_rate()
    return PricingResult(
        room=room,
        hours=hours,
        room_cost=room_cost,
        add_on_cost=add_on_cost,
        room_commission=room_cost * rate,
        room_owner_amount=room_cost * (Decimal(1) - rate),
        total_price=room_cost + add_on_cost,
        add_ons=add_ons,
    )
