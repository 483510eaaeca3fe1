"""
Initialize database — creates all tables and seeds the maintenance rule catalog.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import create_tables, engine, SessionLocal
from app.config import settings
from app.services.rule_catalog import ensure_maintenance_rules, load_rules
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError


def main():
    print("🗄️  Fleet Maintenance DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    # Test connection
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except SQLAlchemyError as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running:")
        print("  docker-compose up -d db")
        print("  # or: sudo systemctl start postgresql")
        sys.exit(1)

    # Create all tables
    print("\n📋 Creating tables...")
    create_tables()
    tables = sorted(inspect(engine).get_table_names())
    print(f"✅ Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    # Seed rule catalog
    print("\n🔧 Seeding maintenance rules...")
    db = SessionLocal()
    try:
        created = ensure_maintenance_rules(db)
        rules = load_rules(db)
    finally:
        db.close()
    print(f"✅ {created} created, {len(rules)} in catalog:")
    for rule in rules:
        print(f"   ✓ {rule.name:<30} every {rule.mileage_interval:>7,} km")

    print("\n🎉 Database ready! You can now start the backend:")
    print("   uvicorn app.main:app --host 0.0.0.0 --port 8080 --reload")


if __name__ == "__main__":
    main()
