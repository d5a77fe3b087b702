"""Donation lifecycle transitions.

    available -> requested -> confirmed -> picked_up -> completed

Side paths:
- reject: vendor returns a requested donation to available
- cancel: vendor withdraws a donation that nobody has requested yet
"""

import enum
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from app.models.donation import DonationStatus
from app.models.user import UserRole

logger = logging.getLogger(__name__)

DONATION_SCORE_PER_COMPLETION = 10

ACTIVE_STATUSES: tuple[str, ...] = (
    DonationStatus.AVAILABLE.value,
    DonationStatus.REQUESTED.value,
    DonationStatus.CONFIRMED.value,
    DonationStatus.PICKED_UP.value,
)

NGO_ACTIVE_STATUSES: tuple[str, ...] = (
    DonationStatus.REQUESTED.value,
    DonationStatus.CONFIRMED.value,
    DonationStatus.PICKED_UP.value,
)


class DonationAction(str, enum.Enum):
    REQUEST = "request"
    CONFIRM = "confirm"
    REJECT = "reject"
    PICKUP = "pickup"
    COMPLETE = "complete"
    CANCEL = "cancel"


class Actor(str, enum.Enum):
    """Which party may perform an action."""

    VENDOR = "vendor"  # the donation's vendor
    EITHER = "either"  # vendor or requester
    ANY_NGO = "any_ngo"  # any NGO


class DonationTransitionError(Exception):
    """Action is not allowed from the donation's current status."""


class DonationPermissionError(Exception):
    """Caller may not perform the action on this donation."""


@dataclass(frozen=True)
class Transition:
    source: str
    target: str
    actor: Actor
    timestamp_field: str | None


TRANSITIONS: dict[DonationAction, Transition] = {
    DonationAction.REQUEST: Transition(
        DonationStatus.AVAILABLE.value, DonationStatus.REQUESTED.value, Actor.ANY_NGO, "requested_at"
    ),
    DonationAction.CONFIRM: Transition(
        DonationStatus.REQUESTED.value, DonationStatus.CONFIRMED.value, Actor.VENDOR, "confirmed_at"
    ),
    DonationAction.REJECT: Transition(
        DonationStatus.REQUESTED.value, DonationStatus.AVAILABLE.value, Actor.VENDOR, None
    ),
    DonationAction.PICKUP: Transition(
        DonationStatus.CONFIRMED.value, DonationStatus.PICKED_UP.value, Actor.EITHER, "picked_up_at"
    ),
    DonationAction.COMPLETE: Transition(
        DonationStatus.PICKED_UP.value, DonationStatus.COMPLETED.value, Actor.EITHER, "completed_at"
    ),
    DonationAction.CANCEL: Transition(
        DonationStatus.AVAILABLE.value, DonationStatus.CANCELLED.value, Actor.VENDOR, "cancelled_at"
    ),
}


def _check_actor(transition: Transition, donation: Any, actor: Any) -> None:
    is_vendor = donation.vendor_id == actor.id
    is_requester = donation.requested_by_id is not None and donation.requested_by_id == actor.id

    if transition.actor is Actor.VENDOR and not is_vendor:
        raise DonationPermissionError("Only the donating vendor can perform this action")
    if transition.actor is Actor.EITHER and not (is_vendor or is_requester):
        raise DonationPermissionError("Only the vendor or requesting NGO can perform this action")
    if transition.actor is Actor.ANY_NGO:
        if UserRole.NGO.value not in (actor.roles or []):
            raise DonationPermissionError("Access denied. NGO role required.")
        if is_vendor:
            raise DonationPermissionError("Vendors cannot request their own donations")


def apply_transition(
    donation: Any,
    action: DonationAction,
    actor: Any,
    vendor: Any | None = None,
    now: datetime | None = None,
) -> Any:
    """Apply a lifecycle action to a donation in place.

    Args:
        donation: Donation being updated.
        action: Lifecycle action.
        actor: Authenticated user performing the action.
        vendor: Donation's vendor; its donation score is credited on completion.
        now: Timestamp to stamp on the stage field.

    Raises:
        DonationPermissionError: Actor may not perform the action.
        DonationTransitionError: Action is not valid from the current status.
    """
    transition = TRANSITIONS[action]
    _check_actor(transition, donation, actor)

    if donation.status != transition.source:
        raise DonationTransitionError(
            f"Cannot {action.value} a donation that is {donation.status}"
        )

    now = now or datetime.now(UTC)
    previous = donation.status
    donation.status = transition.target

    if transition.timestamp_field:
        setattr(donation, transition.timestamp_field, now)

    if action is DonationAction.REQUEST:
        donation.requested_by_id = actor.id
    elif action is DonationAction.REJECT:
        donation.requested_by_id = None
        donation.requested_at = None
    elif action is DonationAction.COMPLETE and vendor is not None:
        vendor.donation_score = (vendor.donation_score or 0) + DONATION_SCORE_PER_COMPLETION

    logger.info(f"Donation {donation.id}: {previous} -> {donation.status} by {actor.id}")
    return donation
