from surplus.config import get_settings
from surplus.db.core import Base, engine
import surplus.db.models  # noqa: F401  (register tables on Base.metadata)


def create_tables() -> None:
    """
    Local bootstrap: create every table that does not exist yet.

    - uses the same DATABASE_URL as the app
    - CREATE TABLE IF NOT EXISTS semantics; existing tables are left alone
    - production schemas go through `alembic upgrade head` instead
    """
    Base.metadata.create_all(bind=engine)


if __name__ == "__main__":
    create_tables()
    print(f"Created/verified tables in {get_settings().database_url}")
