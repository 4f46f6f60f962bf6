# Ledger Store: Database Models
# Import all models here for SQLAlchemy discovery

from app.models.occupant import Occupant                # noqa
from app.models.resource import Resource                # noqa
from app.models.checkout import Checkout                # noqa
from app.models.checkin import CheckIn                  # noqa
from app.models.damage_report import DamageReport       # noqa
from app.models.entity_lock import EntityLock           # noqa
