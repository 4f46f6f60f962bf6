# app/services/lifecycle_service.py
"""
Lifecycle Service: the single entry point for every ledger write.

Each transition runs the same protocol:
  1. begin a transaction
  2. take the Transition Guard lock on the entity (blocks while another
     transition on the same entity is in flight)
  3. re-read the entity inside the transaction
  4. run the Invariant Validator on that fresh state
  5. rejected → roll back, return the Rejection (nothing written)
  6. accepted → write the new state and the history record, commit
  7. the lock is released by the commit/rollback

Business rejections come back as values inside a TransitionResult.
Storage failures (driver errors and connection-pool timeouts) are raised as
LedgerUnavailable; no retries happen here.
The service keeps no state between calls apart from its injected store.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from pydantic import BaseModel
from sqlalchemy.exc import DBAPIError, IntegrityError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from app.database import LedgerStore
from app.exceptions import LedgerUnavailable
from app.models.checkin import CheckIn
from app.models.checkout import Checkout
from app.models.damage_report import DamageReport
from app.models.occupant import Occupant, OccupantState
from app.models.resource import Resource, ResourceState
from app.schemas.damage_report import DamageReportRequest, DamageReportOut
from app.schemas.occupant import SignInRequest, OccupantOut
from app.schemas.resource import (
    CheckInReceipt,
    CheckInRequest,
    CheckInOut,
    CheckoutReceipt,
    CheckoutRequest,
    CheckoutOut,
    ResourceCreate,
    ResourceOut,
    normalise_registration,
)
from app.services import invariants
from app.services.invariants import LedgerLimits, Rejection, RejectionKind, Transition
from app.services.transition_guard import lock_occupant, lock_resource
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    snapshot: Optional[BaseModel] = None
    rejection: Optional[Rejection] = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None


class LifecycleService:
    def __init__(self, store: LedgerStore, limits: Optional[LedgerLimits] = None):
        self.store = store
        self.limits = limits or LedgerLimits.from_settings()

    def open(self) -> "LifecycleService":
        self.store.open()
        return self

    def close(self):
        self.store.close()

    # ── Protocol ─────────────────────────────────────────────────────────────

    @contextmanager
    def _transaction(self, transition: Transition, entity_id):
        try:
            with self.store.session() as db:
                yield db
        except (DBAPIError, PoolTimeoutError) as e:
            logger.error(f"[{transition.value}] Storage failure on {entity_id}: {e}", exc_info=True)
            raise LedgerUnavailable(transition.value, entity_id) from e

    def _rejected(self, db: Session, rejection: Rejection) -> TransitionResult:
        db.rollback()
        logger.warning(
            f"[{rejection.transition.value}] REJECTED {rejection.kind.value} "
            f"entity={rejection.entity_id} state={rejection.current_state} reason={rejection.reason}"
        )
        return TransitionResult(rejection=rejection)

    def _apply_transition(
        self,
        transition: Transition,
        entity_id,
        lock: Callable,
        check: Callable[[Session, object], Optional[Rejection]],
        apply: Callable[[Session, object], BaseModel],
    ) -> TransitionResult:
        with self._transaction(transition, entity_id) as db:
            with lock(db) as entity:
                rejection = check(db, entity)
                if rejection is None:
                    snapshot = apply(db, entity)
                    db.flush()
            if rejection is not None:
                return self._rejected(db, rejection)
            db.commit()
        logger.info(f"[{transition.value}] {entity_id} accepted")
        return TransitionResult(snapshot=snapshot)

    @staticmethod
    def _open_checkout(db: Session, vehicle: Optional[Resource]) -> Optional[Checkout]:
        if vehicle is None or vehicle.active_checkout_id is None:
            return None
        return db.query(Checkout).filter(Checkout.id == vehicle.active_checkout_id).first()

    # ── Occupants ────────────────────────────────────────────────────────────

    def sign_in(self, request: SignInRequest) -> TransitionResult:
        """Create a new on-site episode. Nothing to conflict with, so always accepted."""
        now = datetime.utcnow()
        fields = request.model_dump(exclude={"kind"})
        if request.document_acknowledged and fields["document_acknowledged_at"] is None:
            fields["document_acknowledged_at"] = now

        with self._transaction(Transition.SIGN_IN, request.full_name) as db:
            occupant = Occupant(
                kind=request.kind.value,
                state=OccupantState.ON_SITE.value,
                entered_at=now,
                exited_at=None,
                updated_at=now,
                **fields,
            )
            db.add(occupant)
            db.flush()
            snapshot = OccupantOut.model_validate(occupant)
            db.commit()
        logger.info(f"[sign_in] {snapshot.kind.value} #{snapshot.id} on site, visiting {snapshot.visiting_person}")
        return TransitionResult(snapshot=snapshot)

    def sign_out(self, occupant_id: int) -> TransitionResult:
        def check(db, occupant):
            return invariants.validate_sign_out(occupant, occupant_id)

        def apply(db, occupant):
            now = datetime.utcnow()
            occupant.state = OccupantState.OFF_SITE.value
            occupant.exited_at = max(now, occupant.entered_at)
            occupant.updated_at = now
            return OccupantOut.model_validate(occupant)

        return self._apply_transition(
            Transition.SIGN_OUT, occupant_id,
            lambda db: lock_occupant(db, occupant_id), check, apply,
        )

    def remove_occupant(self, occupant_id: int) -> TransitionResult:
        """Administrative delete; not a lifecycle transition."""
        def check(db, occupant):
            return invariants.validate_occupant_removal(occupant, occupant_id)

        def apply(db, occupant):
            snapshot = OccupantOut.model_validate(occupant)
            db.delete(occupant)
            return snapshot

        return self._apply_transition(
            Transition.REMOVE, occupant_id,
            lambda db: lock_occupant(db, occupant_id), check, apply,
        )

    # ── Vehicles ─────────────────────────────────────────────────────────────

    def checkout(self, request: CheckoutRequest) -> TransitionResult:
        registration = request.registration

        def check(db, vehicle):
            return invariants.validate_checkout(vehicle, request, self.limits)

        def apply(db, vehicle):
            now = datetime.utcnow()
            checkout = Checkout(
                resource_id=vehicle.id,
                registration=registration,
                operator=request.operator,
                company_name=request.company_name,
                starting_odometer=request.starting_odometer,
                terms_acknowledged=request.terms_acknowledged,
                terms_acknowledged_at=now if request.terms_acknowledged else None,
                signature=request.signature,
                opened_at=now,
            )
            db.add(checkout)
            db.flush()   # assigns checkout.id
            vehicle.state = ResourceState.IN_USE.value
            vehicle.active_checkout_id = checkout.id
            vehicle.odometer = request.starting_odometer
            vehicle.updated_at = now
            return CheckoutReceipt(
                resource=ResourceOut.model_validate(vehicle),
                checkout=CheckoutOut.model_validate(checkout),
            )

        return self._apply_transition(
            Transition.CHECKOUT, registration,
            lambda db: lock_resource(db, registration), check, apply,
        )

    def check_in(self, request: CheckInRequest) -> TransitionResult:
        registration = request.registration

        def check(db, vehicle):
            checkout = self._open_checkout(db, vehicle)
            return invariants.validate_check_in(vehicle, checkout, request, self.limits)

        def apply(db, vehicle):
            now = datetime.utcnow()
            checkout = self._open_checkout(db, vehicle)
            checkin = CheckIn(
                checkout_id=checkout.id,
                resource_id=vehicle.id,
                registration=registration,
                ending_odometer=request.ending_odometer,
                operator=request.operator,
                closed_at=now,
            )
            db.add(checkin)
            db.flush()
            vehicle.state = ResourceState.AVAILABLE.value
            vehicle.active_checkout_id = None
            vehicle.odometer = request.ending_odometer
            vehicle.updated_at = now
            return CheckInReceipt(
                resource=ResourceOut.model_validate(vehicle),
                checkin=CheckInOut.model_validate(checkin),
                distance=request.ending_odometer - checkout.starting_odometer,
            )

        return self._apply_transition(
            Transition.CHECK_IN, registration,
            lambda db: lock_resource(db, registration), check, apply,
        )

    def set_maintenance(self, registration: str, under_maintenance: bool) -> TransitionResult:
        registration = normalise_registration(registration)

        def check(db, vehicle):
            return invariants.validate_maintenance(vehicle, registration, under_maintenance)

        def apply(db, vehicle):
            target = ResourceState.MAINTENANCE if under_maintenance else ResourceState.AVAILABLE
            vehicle.state = target.value
            vehicle.updated_at = datetime.utcnow()
            return ResourceOut.model_validate(vehicle)

        return self._apply_transition(
            Transition.MAINTENANCE, registration,
            lambda db: lock_resource(db, registration), check, apply,
        )

    def register_resource(self, request: ResourceCreate) -> TransitionResult:
        registration = request.registration

        def check(db, existing):
            return invariants.validate_registration(existing, request, self.limits)

        def apply(db, _):
            now = datetime.utcnow()
            vehicle = Resource(
                registration=registration,
                state=request.state.value,
                odometer=request.odometer,
                active_checkout_id=None,
                make=request.make,
                model=request.model,
                year=request.year,
                notes=request.notes,
                created_at=now,
                updated_at=now,
            )
            db.add(vehicle)
            db.flush()
            return ResourceOut.model_validate(vehicle)

        try:
            return self._apply_transition(
                Transition.REGISTER, registration,
                lambda db: lock_resource(db, registration), check, apply,
            )
        except LedgerUnavailable as e:
            # Row locks cannot cover a row that does not exist yet; the UNIQUE
            # constraint settles a concurrent registration of the same plate.
            if not isinstance(e.__cause__, IntegrityError):
                raise
            rejection = Rejection(
                kind=RejectionKind.CONFLICT,
                transition=Transition.REGISTER,
                entity_id=registration,
                current_state=None,
                reason="duplicate_registration",
                message="Vehicle with this registration already exists",
            )
            logger.warning(f"[register] REJECTED CONFLICT entity={registration} reason=duplicate_registration")
            return TransitionResult(rejection=rejection)

    def remove_resource(self, registration: str) -> TransitionResult:
        """Administrative delete. History rows keep the registration for audit."""
        registration = normalise_registration(registration)

        def check(db, vehicle):
            return invariants.validate_resource_removal(vehicle, registration)

        def apply(db, vehicle):
            snapshot = ResourceOut.model_validate(vehicle)
            db.delete(vehicle)
            return snapshot

        return self._apply_transition(
            Transition.REMOVE, registration,
            lambda db: lock_resource(db, registration), check, apply,
        )

    def report_damage(self, request: DamageReportRequest) -> TransitionResult:
        """Append a damage report to a check-in. No state-machine effect, so no lock."""
        with self._transaction(Transition.REPORT_DAMAGE, request.checkin_id) as db:
            checkin = db.query(CheckIn).filter(CheckIn.id == request.checkin_id).first()
            rejection = invariants.validate_damage_report(checkin, request.checkin_id)
            if rejection is not None:
                return self._rejected(db, rejection)
            report = DamageReport(
                checkin_id=checkin.id,
                description=request.description,
                photos=",".join(request.photos) or None,
                reporter=request.reporter,
                status="reported",
                reported_at=datetime.utcnow(),
            )
            db.add(report)
            db.flush()
            snapshot = DamageReportOut.model_validate(report)
            db.commit()
        logger.info(f"[report_damage] Damage reported on check-in #{request.checkin_id} by {request.reporter}")
        return TransitionResult(snapshot=snapshot)
