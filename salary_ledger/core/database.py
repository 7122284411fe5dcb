from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import settings


def _engine_options(database_url: str) -> dict:
    options = {"echo": settings.db_echo, "pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    else:
        # Settlement relies on row locks taken under read committed isolation
        options["isolation_level"] = "READ COMMITTED"
        options["pool_recycle"] = 300
    return options


# Create database engine
engine = create_engine(settings.database_url, **_engine_options(settings.database_url))

# Create SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create Base class for models
Base = declarative_base()

# Dependency to get database session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
