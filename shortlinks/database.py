from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from shortlinks import config

# Dev: SQLite (zero config), Prod: PostgreSQL
if config.ENVIRONMENT == "prod":
    if not config.DATABASE_URL:
        raise RuntimeError("DATABASE_URL must be set in production")
    DATABASE_URL = config.DATABASE_URL
    engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
    )
else:
    # SQLite for local dev, stored next to the package folder unless overridden
    DATABASE_URL = config.DATABASE_URL or f"sqlite:///{config.DEV_DB_PATH}"
    if DATABASE_URL.startswith("sqlite"):
        engine_kwargs = {"connect_args": {"check_same_thread": False}}  # needed for SQLite + FastAPI
        if DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
            # every connection would otherwise get its own empty database
            engine_kwargs["poolclass"] = StaticPool
        engine = create_engine(DATABASE_URL, **engine_kwargs)
    else:
        engine = create_engine(DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
