# tests/test_invariants.py
"""Unit tests for the invariant validator (pure, no database)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime
from app.models.checkout import Checkout
from app.models.occupant import Occupant
from app.models.resource import Resource
from app.schemas.resource import CheckInRequest, CheckoutRequest, ResourceCreate
from app.services import invariants
from app.services.invariants import LedgerLimits, RejectionKind, Transition

LIMITS = LedgerLimits(max_trip_distance=1000, max_odometer=999_999)


def make_vehicle(state="available", odometer=50000, active_checkout_id=None):
    return Resource(id=1, registration="ABC123", state=state, odometer=odometer,
                    active_checkout_id=active_checkout_id)


def make_checkout_row(starting=50000):
    return Checkout(id=7, resource_id=1, registration="ABC123", operator="Jo Driver",
                    starting_odometer=starting, terms_acknowledged=True, opened_at=datetime.utcnow())


def checkout_req(odometer=50000):
    return CheckoutRequest(registration="ABC123", operator="Jo Driver", starting_odometer=odometer)


def checkin_req(odometer):
    return CheckInRequest(registration="ABC123", operator="Jo Driver", ending_odometer=odometer)


class TestCheckoutValidation:
    def test_available_vehicle_accepted(self):
        assert invariants.validate_checkout(make_vehicle(), checkout_req(), LIMITS) is None

    def test_unknown_vehicle_not_found(self):
        r = invariants.validate_checkout(None, checkout_req(), LIMITS)
        assert r.kind == RejectionKind.NOT_FOUND
        assert r.entity_id == "ABC123"

    def test_in_use_is_conflict(self):
        r = invariants.validate_checkout(make_vehicle(state="in_use", active_checkout_id=7),
                                         checkout_req(), LIMITS)
        assert r.kind == RejectionKind.CONFLICT
        assert r.reason == "already_checked_out"
        assert r.current_state == "in_use"
        assert r.transition == Transition.CHECKOUT

    def test_maintenance_is_conflict_unavailable(self):
        r = invariants.validate_checkout(make_vehicle(state="maintenance"), checkout_req(), LIMITS)
        assert r.kind == RejectionKind.CONFLICT
        assert r.reason == "unavailable"

    def test_negative_reading_out_of_range(self):
        r = invariants.validate_checkout(make_vehicle(odometer=0), checkout_req(-1), LIMITS)
        assert r.kind == RejectionKind.OUT_OF_RANGE
        assert r.reason == "negative_reading"

    def test_reading_above_ceiling_out_of_range(self):
        r = invariants.validate_checkout(make_vehicle(), checkout_req(1_000_000), LIMITS)
        assert r.kind == RejectionKind.OUT_OF_RANGE
        assert r.reason == "above_ceiling"

    def test_reading_at_ceiling_accepted(self):
        assert invariants.validate_checkout(make_vehicle(), checkout_req(999_999), LIMITS) is None

    def test_reading_below_recorded_odometer_rejected(self):
        r = invariants.validate_checkout(make_vehicle(odometer=50000), checkout_req(49999), LIMITS)
        assert r.kind == RejectionKind.OUT_OF_RANGE
        assert r.reason == "odometer_regression"

    def test_conflict_wins_over_bad_reading(self):
        r = invariants.validate_checkout(make_vehicle(state="in_use"), checkout_req(-5), LIMITS)
        assert r.kind == RejectionKind.CONFLICT


class TestCheckInValidation:
    def test_within_trip_limit_accepted(self):
        v = make_vehicle(state="in_use", active_checkout_id=7)
        assert invariants.validate_check_in(v, make_checkout_row(), checkin_req(50200), LIMITS) is None

    def test_exactly_max_trip_distance_accepted(self):
        v = make_vehicle(state="in_use", active_checkout_id=7)
        assert invariants.validate_check_in(v, make_checkout_row(), checkin_req(51000), LIMITS) is None

    def test_one_over_max_trip_distance_implausible(self):
        v = make_vehicle(state="in_use", active_checkout_id=7)
        r = invariants.validate_check_in(v, make_checkout_row(), checkin_req(51001), LIMITS)
        assert r.kind == RejectionKind.IMPLAUSIBLE_DELTA
        assert r.reason == "trip_distance_exceeded"
        assert "1001" in r.message

    def test_zero_distance_accepted(self):
        v = make_vehicle(state="in_use", active_checkout_id=7)
        assert invariants.validate_check_in(v, make_checkout_row(), checkin_req(50000), LIMITS) is None

    def test_regression_rejected(self):
        v = make_vehicle(state="in_use", active_checkout_id=7)
        r = invariants.validate_check_in(v, make_checkout_row(), checkin_req(49999), LIMITS)
        assert r.kind == RejectionKind.OUT_OF_RANGE
        assert r.reason == "odometer_regression"

    def test_not_checked_out_already_in_state(self):
        r = invariants.validate_check_in(make_vehicle(), None, checkin_req(50200), LIMITS)
        assert r.kind == RejectionKind.ALREADY_IN_STATE
        assert r.reason == "not_checked_out"
        assert r.current_state == "available"

    def test_maintenance_vehicle_not_checked_out(self):
        r = invariants.validate_check_in(make_vehicle(state="maintenance"), None, checkin_req(50200), LIMITS)
        assert r.kind == RejectionKind.ALREADY_IN_STATE

    def test_unknown_vehicle_not_found(self):
        r = invariants.validate_check_in(None, None, checkin_req(50200), LIMITS)
        assert r.kind == RejectionKind.NOT_FOUND

    def test_above_ceiling_out_of_range(self):
        v = make_vehicle(state="in_use", odometer=999_500, active_checkout_id=7)
        r = invariants.validate_check_in(v, make_checkout_row(999_500), checkin_req(1_000_100), LIMITS)
        assert r.kind == RejectionKind.OUT_OF_RANGE
        assert r.reason == "above_ceiling"

    def test_custom_trip_limit(self):
        limits = LedgerLimits(max_trip_distance=50, max_odometer=999_999)
        v = make_vehicle(state="in_use", active_checkout_id=7)
        r = invariants.validate_check_in(v, make_checkout_row(), checkin_req(50051), limits)
        assert r.kind == RejectionKind.IMPLAUSIBLE_DELTA


class TestSignOutValidation:
    def _occupant(self, state):
        return Occupant(id=3, kind="visitor", state=state, entered_at=datetime.utcnow())

    def test_on_site_accepted(self):
        assert invariants.validate_sign_out(self._occupant("on_site"), 3) is None

    def test_off_site_already_in_state(self):
        r = invariants.validate_sign_out(self._occupant("off_site"), 3)
        assert r.kind == RejectionKind.ALREADY_IN_STATE
        assert r.entity_id == "3"
        assert r.current_state == "off_site"

    def test_missing_not_found(self):
        assert invariants.validate_sign_out(None, 99).kind == RejectionKind.NOT_FOUND


class TestMaintenanceAndRegistry:
    def test_flag_available_vehicle(self):
        assert invariants.validate_maintenance(make_vehicle(), "ABC123", True) is None

    def test_flag_in_use_vehicle_conflict(self):
        r = invariants.validate_maintenance(make_vehicle(state="in_use"), "ABC123", True)
        assert r.kind == RejectionKind.CONFLICT

    def test_clear_when_not_flagged_already_in_state(self):
        r = invariants.validate_maintenance(make_vehicle(), "ABC123", False)
        assert r.kind == RejectionKind.ALREADY_IN_STATE
        assert r.reason == "already_available"

    def test_duplicate_registration_conflict(self):
        r = invariants.validate_registration(make_vehicle(), ResourceCreate(registration="abc123"), LIMITS)
        assert r.kind == RejectionKind.CONFLICT
        assert r.reason == "duplicate_registration"

    def test_new_vehicle_cannot_start_in_use(self):
        r = invariants.validate_registration(None, ResourceCreate(registration="XYZ1", state="in_use"), LIMITS)
        assert r.kind == RejectionKind.OUT_OF_RANGE

    def test_new_vehicle_negative_odometer(self):
        r = invariants.validate_registration(None, ResourceCreate(registration="XYZ1", odometer=-3), LIMITS)
        assert r.reason == "negative_reading"

    def test_remove_in_use_conflict(self):
        r = invariants.validate_resource_removal(make_vehicle(state="in_use"), "ABC123")
        assert r.kind == RejectionKind.CONFLICT
