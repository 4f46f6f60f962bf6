# app/services/invariants.py
"""
Invariant Validator: pure accept/reject logic for every ledger transition.

Each validate_* function takes the entity row as freshly read under the
transition lock (None when it does not exist) plus the request payload, and
returns None to accept or a Rejection describing why not. Nothing here
touches the database or raises for a business rule.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.config import settings
from app.models.occupant import Occupant, OccupantState
from app.models.resource import Resource, ResourceState
from app.models.checkout import Checkout
from app.schemas.resource import CheckoutRequest, CheckInRequest, ResourceCreate


class RejectionKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    ALREADY_IN_STATE = "ALREADY_IN_STATE"
    CONFLICT = "CONFLICT"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    IMPLAUSIBLE_DELTA = "IMPLAUSIBLE_DELTA"


class Transition(str, Enum):
    SIGN_IN = "sign_in"
    SIGN_OUT = "sign_out"
    CHECKOUT = "checkout"
    CHECK_IN = "check_in"
    MAINTENANCE = "maintenance"
    REGISTER = "register"
    REMOVE = "remove"
    REPORT_DAMAGE = "report_damage"


@dataclass(frozen=True)
class LedgerLimits:
    max_trip_distance: int = 1000
    max_odometer: int = 999_999

    @classmethod
    def from_settings(cls) -> "LedgerLimits":
        return cls(max_trip_distance=settings.MAX_TRIP_DISTANCE, max_odometer=settings.MAX_ODOMETER)


@dataclass(frozen=True)
class Rejection:
    kind: RejectionKind
    transition: Transition
    entity_id: Optional[str]
    current_state: Optional[str]
    reason: str
    message: str


def _reject(kind, transition, entity_id, current_state, reason, message) -> Rejection:
    state = current_state.value if isinstance(current_state, Enum) else current_state
    return Rejection(
        kind=kind,
        transition=transition,
        entity_id=None if entity_id is None else str(entity_id),
        current_state=state,
        reason=reason,
        message=message,
    )


def _check_reading(value: int, label: str, transition: Transition, registration: str,
                   state: str, limits: LedgerLimits) -> Optional[Rejection]:
    if value < 0:
        return _reject(RejectionKind.OUT_OF_RANGE, transition, registration, state,
                       "negative_reading", f"{label} must be a non-negative integer")
    if value > limits.max_odometer:
        return _reject(RejectionKind.OUT_OF_RANGE, transition, registration, state,
                       "above_ceiling",
                       f"{label} exceeds maximum allowed value ({limits.max_odometer:,})")
    return None


# ── Occupants ────────────────────────────────────────────────────────────────

def validate_sign_out(occupant: Optional[Occupant], occupant_id: int) -> Optional[Rejection]:
    if occupant is None:
        return _reject(RejectionKind.NOT_FOUND, Transition.SIGN_OUT, occupant_id, None,
                       "occupant_not_found", "Sign-in not found")
    if occupant.state != OccupantState.ON_SITE:
        return _reject(RejectionKind.ALREADY_IN_STATE, Transition.SIGN_OUT, occupant_id,
                       occupant.state, "already_signed_out", "Visitor is already signed out")
    return None


def validate_occupant_removal(occupant: Optional[Occupant], occupant_id: int) -> Optional[Rejection]:
    if occupant is None:
        return _reject(RejectionKind.NOT_FOUND, Transition.REMOVE, occupant_id, None,
                       "occupant_not_found", "Sign-in not found")
    return None


# ── Vehicles ─────────────────────────────────────────────────────────────────

def _vehicle_not_found(transition: Transition, registration: str) -> Rejection:
    return _reject(RejectionKind.NOT_FOUND, transition, registration, None,
                   "vehicle_not_found", "Vehicle not found")


def validate_checkout(resource: Optional[Resource], request: CheckoutRequest,
                      limits: LedgerLimits) -> Optional[Rejection]:
    """AVAILABLE → IN_USE."""
    reg = request.registration
    if resource is None:
        return _vehicle_not_found(Transition.CHECKOUT, reg)
    if resource.state == ResourceState.IN_USE:
        return _reject(RejectionKind.CONFLICT, Transition.CHECKOUT, reg, resource.state,
                       "already_checked_out", "Vehicle is already checked out")
    if resource.state == ResourceState.MAINTENANCE:
        return _reject(RejectionKind.CONFLICT, Transition.CHECKOUT, reg, resource.state,
                       "unavailable", "Vehicle is under maintenance")

    rejection = _check_reading(request.starting_odometer, "Starting mileage",
                               Transition.CHECKOUT, reg, resource.state, limits)
    if rejection:
        return rejection
    # The stored odometer must never move backwards, not even across a checkout
    if request.starting_odometer < resource.odometer:
        return _reject(RejectionKind.OUT_OF_RANGE, Transition.CHECKOUT, reg, resource.state,
                       "odometer_regression",
                       f"Starting mileage ({request.starting_odometer}) cannot be less than "
                       f"the recorded mileage ({resource.odometer})")
    return None


def validate_check_in(resource: Optional[Resource], checkout: Optional[Checkout],
                      request: CheckInRequest, limits: LedgerLimits) -> Optional[Rejection]:
    """IN_USE → AVAILABLE. `checkout` is the vehicle's open checkout, if any."""
    reg = request.registration
    if resource is None:
        return _vehicle_not_found(Transition.CHECK_IN, reg)
    if resource.state != ResourceState.IN_USE or checkout is None:
        return _reject(RejectionKind.ALREADY_IN_STATE, Transition.CHECK_IN, reg, resource.state,
                       "not_checked_out", "Vehicle is not currently checked out")

    ending = request.ending_odometer
    rejection = _check_reading(ending, "Return mileage", Transition.CHECK_IN, reg,
                               resource.state, limits)
    if rejection:
        return rejection

    starting = checkout.starting_odometer
    if ending < starting:
        return _reject(RejectionKind.OUT_OF_RANGE, Transition.CHECK_IN, reg, resource.state,
                       "odometer_regression",
                       f"Return mileage ({ending}) cannot be less than starting mileage ({starting})")
    distance = ending - starting
    if distance > limits.max_trip_distance:
        return _reject(RejectionKind.IMPLAUSIBLE_DELTA, Transition.CHECK_IN, reg, resource.state,
                       "trip_distance_exceeded",
                       f"Distance traveled ({distance}) exceeds maximum single trip of "
                       f"{limits.max_trip_distance}. Please verify mileage.")
    return None


def validate_maintenance(resource: Optional[Resource], registration: str,
                         under_maintenance: bool) -> Optional[Rejection]:
    """AVAILABLE ↔ MAINTENANCE. A vehicle out on a trip cannot be flagged."""
    if resource is None:
        return _vehicle_not_found(Transition.MAINTENANCE, registration)
    if resource.state == ResourceState.IN_USE:
        return _reject(RejectionKind.CONFLICT, Transition.MAINTENANCE, registration, resource.state,
                       "in_use", "Vehicle is checked out")
    target = ResourceState.MAINTENANCE if under_maintenance else ResourceState.AVAILABLE
    if resource.state == target:
        return _reject(RejectionKind.ALREADY_IN_STATE, Transition.MAINTENANCE, registration,
                       resource.state, f"already_{target.value}", f"Vehicle is already {target.value}")
    return None


def validate_registration(existing: Optional[Resource], request: ResourceCreate,
                          limits: LedgerLimits) -> Optional[Rejection]:
    reg = request.registration
    if existing is not None:
        return _reject(RejectionKind.CONFLICT, Transition.REGISTER, reg, existing.state,
                       "duplicate_registration", "Vehicle with this registration already exists")
    if request.state == ResourceState.IN_USE:
        return _reject(RejectionKind.OUT_OF_RANGE, Transition.REGISTER, reg, None,
                       "invalid_initial_state", "A new vehicle cannot start checked out")
    return _check_reading(request.odometer, "Mileage", Transition.REGISTER, reg, None, limits)


def validate_damage_report(checkin, checkin_id: int) -> Optional[Rejection]:
    if checkin is None:
        return _reject(RejectionKind.NOT_FOUND, Transition.REPORT_DAMAGE, checkin_id, None,
                       "checkin_not_found", "Check-in record not found")
    return None


def validate_resource_removal(resource: Optional[Resource], registration: str) -> Optional[Rejection]:
    if resource is None:
        return _vehicle_not_found(Transition.REMOVE, registration)
    if resource.state == ResourceState.IN_USE:
        return _reject(RejectionKind.CONFLICT, Transition.REMOVE, registration, resource.state,
                       "in_use", "Vehicle is checked out")
    return None
