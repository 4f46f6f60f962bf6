# scripts/setup/init_db.py
"""
Initialize database: creates all tables, optionally seeds a sample fleet.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py [--seed]
"""

import sys
import os
import argparse
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from sqlalchemy import inspect
from app.database import LedgerStore
from app.config import settings
from app.models.resource import ResourceState
from app.schemas.resource import ResourceCreate
from app.services.lifecycle_service import LifecycleService

SAMPLE_FLEET = [
    ("AY63BSO", ResourceState.AVAILABLE, 15000),
    ("BY63BSO", ResourceState.AVAILABLE, 12500),
    ("CY63BSO", ResourceState.AVAILABLE, 18000),
    ("DY63BSO", ResourceState.MAINTENANCE, 20000),
]


def main():
    parser = argparse.ArgumentParser(description="Create ledger tables")
    parser.add_argument("--seed", action="store_true", help="Register the sample fleet")
    args = parser.parse_args()

    print("🗄️  Ledger DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    store = LedgerStore(settings.DATABASE_URL).open()
    try:
        store.ping()
        print("✅ Database connection OK")
    except Exception as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running:")
        print("  docker-compose up -d db")
        print("  # or: sudo systemctl start postgresql")
        sys.exit(1)

    print("\n📋 Creating tables...")
    store.create_tables()
    tables = sorted(inspect(store.engine).get_table_names())
    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    if args.seed:
        print("\n🚗 Registering sample fleet...")
        lifecycle = LifecycleService(store)
        for registration, state, odometer in SAMPLE_FLEET:
            result = lifecycle.register_resource(
                ResourceCreate(registration=registration, state=state, odometer=odometer)
            )
            if result.accepted:
                print(f"   ✓ {registration} ({state.value}, {odometer:,})")
            else:
                print(f"   - {registration}: {result.rejection.message}")

    store.close()
    print("\n🎉 Database ready! You can now start the backend:")
    print(f"   uvicorn app.main:app --host 0.0.0.0 --port {settings.BACKEND_PORT} --reload")


if __name__ == "__main__":
    main()
