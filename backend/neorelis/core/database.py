from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from neorelis.core.config import settings

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def dialect_insert(db, model):
    """INSERT construct for the session's dialect, with on_conflict_do_update support."""
    name = db.get_bind().dialect.name
    if name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"Atomic upsert is not supported for dialect {name!r}")
    return insert(model)
