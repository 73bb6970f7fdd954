from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
import logging
import os
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# Check if running in serverless environment (Vercel)
IS_SERVERLESS = os.getenv("VERCEL") == "1" or os.getenv("AWS_LAMBDA_FUNCTION_NAME") is not None

# Priority: Vercel Postgres > DATABASE_URL > SQLite (in-memory for serverless) > SQLite (file-based for local)
POSTGRES_URL = os.getenv("POSTGRES_URL")
DATABASE_URL = os.getenv("DATABASE_URL")


def _normalize_postgres_url(url: str) -> str:
    # SQLAlchemy only accepts the postgresql:// scheme
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def build_engine(url: str):
    """Create an engine with the connection options each backend needs."""
    if url.startswith("postgres"):
        return create_engine(
            _normalize_postgres_url(url),
            echo=False,
            pool_pre_ping=True,  # Verify connections before using them
            pool_recycle=300,
        )

    connect_args = {"check_same_thread": False}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # All connections must share the same in-memory database
        return create_engine(url, connect_args=connect_args, poolclass=StaticPool, echo=False)
    return create_engine(url, connect_args=connect_args)


if POSTGRES_URL:
    SQLALCHEMY_DATABASE_URL = POSTGRES_URL
    logger.info("Using Vercel Postgres database")
elif DATABASE_URL:
    SQLALCHEMY_DATABASE_URL = DATABASE_URL
    logger.info("Using database from DATABASE_URL")
elif IS_SERVERLESS:
    SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
    logger.warning("Using in-memory SQLite (data will not persist - configure Postgres for production)")
else:
    SQLALCHEMY_DATABASE_URL = "sqlite:///./readingbuddy.db"
    logger.info("Using SQLite database (local development)")

engine = build_engine(SQLALCHEMY_DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None):
    """Create all tables that don't exist yet."""
    # Imported for its side effect of registering the tables on Base.metadata
    from readingbuddy.models import schema  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
