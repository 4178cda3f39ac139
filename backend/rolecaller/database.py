"""
Configuration des deux bases de données :
- la base distante PostgreSQL (autorité, accessible uniquement en ligne) ;
- le cache local SQLite de l'appareil (durable, accessible hors-ligne).

Chaque base a son propre Base déclaratif pour que create_all() sur le cache
local ne crée jamais les tables distantes (et inversement).
"""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from rolecaller.config import settings

# Base distante : pool_pre_ping détecte une connexion coupée avant la requête
engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# Cache local : check_same_thread=False car FastAPI exécute les routes sync dans un threadpool
local_engine = create_engine(
    settings.LOCAL_DATABASE_URL,
    connect_args={"check_same_thread": False},
)
LocalSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=local_engine)
LocalBase = declarative_base()


def enable_sqlite_wal(engine_) -> None:
    """Active le journal WAL sur chaque connexion SQLite (lectures pendant un pull)."""

    @event.listens_for(engine_, "connect")
    def _set_wal(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()


if local_engine.dialect.name == "sqlite" and ":memory:" not in settings.LOCAL_DATABASE_URL:
    enable_sqlite_wal(local_engine)
