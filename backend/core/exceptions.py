"""
Error taxonomy shared by the booking, payment and membership services.

Validation, missing-resource and permission failures reuse the Django REST
Framework exceptions directly; the classes below add the two categories DRF
does not ship (conflicts and upstream processor failures) plus one subclass per
precondition so callers and tests can tell them apart by type or ``code``.
"""

from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    NotFound,
    ParseError,
    PermissionDenied,
    ValidationError,
)


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with the current state of the resource."
    default_code = "conflict"


class UpstreamError(APIException):
    """A payment processor call failed or returned something unusable."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The payment processor rejected the request."
    default_code = "upstream_error"


class MusicianRequired(PermissionDenied):
    default_detail = "Only musicians can pay for bookings."
    default_code = "musician_required"


class StudioOwnerRequired(PermissionDenied):
    default_detail = "Only studio owners can purchase memberships."
    default_code = "studio_owner_required"


class NotStudioOwner(PermissionDenied):
    default_detail = "You cannot manage another owner's studio."
    default_code = "not_studio_owner"


class StudioInactive(PermissionDenied):
    default_detail = "The studio is not active and cannot receive bookings."
    default_code = "studio_inactive"


class BookingNotFound(NotFound):
    default_detail = "Booking not found."
    default_code = "booking_not_found"


class RoomNotFound(NotFound):
    default_detail = "Room not found."
    default_code = "room_not_found"


class StudioNotFound(NotFound):
    default_detail = "Studio not found."
    default_code = "studio_not_found"


class MembershipNotFound(NotFound):
    default_detail = "No pending membership matches this payment."
    default_code = "membership_not_found"


class BookingAlreadyPaid(Conflict):
    default_detail = "This booking has already been paid."
    default_code = "booking_already_paid"


class BookingNotPayable(Conflict):
    default_detail = "This booking can no longer be paid."
    default_code = "booking_not_payable"


class PayoutDestinationMissing(Conflict):
    default_detail = "The studio has not connected a payout account yet."
    default_code = "payout_destination_missing"


class MembershipAlreadyActive(Conflict):
    default_detail = "The studio already has an active membership for this plan."
    default_code = "membership_already_active"


class BookingRoomMissing(ValidationError):
    default_detail = "The booking must have a room assigned."
    default_code = "booking_room_missing"


class InvalidTimeRange(ValidationError):
    default_detail = "End time must be after the start time."
    default_code = "invalid_time_range"


class SimulationDisabled(PermissionDenied):
    default_detail = "Payment simulation is disabled on this deployment."
    default_code = "simulation_disabled"


class WebhookRejected(ParseError):
    """Signature, secret or payload check failed; nothing was processed."""

    default_detail = "Webhook could not be verified."
    default_code = "webhook_rejected"
