# kunapet/storage/db.py
from __future__ import annotations
from contextlib import contextmanager
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from kunapet.config import DATABASE_URL

# === ENGINE ===
# SQLite necesita check_same_thread=False con FastAPI (varios hilos por request)
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    DATABASE_URL,
    echo=False,          # Cambia a True para ver el SQL en consola
    future=True,
    pool_pre_ping=True,  # Verifica conexiones antes de usarlas
    connect_args=connect_args,
)

# === BASE ORM ===
class Base(DeclarativeBase):
    """Clase base para los modelos ORM."""
    pass

# === SESIÓN ===
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    future=True,
)

# === DEPENDENCIA PARA FASTAPI ===
def get_db() -> Generator:
    """Genera una sesión por request (para inyección en FastAPI)."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

# === CONTEXTO OPCIONAL ===
@contextmanager
def session_scope(factory=SessionLocal):
    """Contexto transaccional (para scripts/tests)."""
    db = factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
