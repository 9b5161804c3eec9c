import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from kunapet.config import LOG_LEVEL
from kunapet.routers import cart, checkout, orders
from kunapet.storage import models  # noqa: F401  # Mantener import para registrar modelos
from kunapet.storage.db import Base, engine

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)


# --- Lifespan ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Se ejecuta al iniciar la app
    Base.metadata.create_all(bind=engine)
    log.info("[startup] Base de datos inicializada y tablas creadas (si no existen).")
    yield
    # Al apagar la app
    log.info("[shutdown] App finalizada correctamente.")


# --- Inicializacion de la app ---
app = FastAPI(
    title="Kunapet Cart & Checkout API",
    version="1.0.0",
    lifespan=lifespan,
)

# --- Routers ---
app.include_router(cart.router)
app.include_router(checkout.router)
app.include_router(orders.router)


@app.get("/")
async def root():
    return {"message": "API de carrito y checkout de Kunapet en linea"}
