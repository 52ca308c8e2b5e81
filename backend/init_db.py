# init_db.py (in backend folder)

from sqlalchemy import inspect

from app.infra.postgres import Base, check_connection, engine
from app.models.content import Content  # noqa: F401
from app.models.user import User  # noqa: F401

def init_db():
    """Drop and recreate all tables"""
    if not check_connection():
        raise SystemExit("❌ Database unreachable, check DATABASE_URL")

    print("⚠️  Dropping vault tables...")
    Base.metadata.drop_all(bind=engine)

    print("📦 Creating tables...")
    Base.metadata.create_all(bind=engine)
    print("✅ Database initialized successfully!")

    inspector = inspect(engine)
    for table in inspector.get_table_names():
        print(f"\n{table}:")
        for col in inspector.get_columns(table):
            print(f"  - {col['name']}: {col['type']}")

if __name__ == "__main__":
    init_db()
