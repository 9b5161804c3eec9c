from kunapet.core.carts.models import Cart
from kunapet.core.carts.store_redis import RedisCartStore
from kunapet.core.carts.store_memory import MemoryCartStore
import logging

log = logging.getLogger(__name__)


class CartService:
    """Operaciones del carrito por sesión, validadas y persistidas en el store."""

    def __init__(self, store=None, redis_url=None, client=None):
        if store is not None:
            self.store = store
        elif redis_url or client is not None:
            # Intenta Redis y si falla usa memoria (para dev/local sin Redis).
            try:
                self.store = RedisCartStore(url=redis_url or "redis://localhost:6379/0", client=client)
                self.store.client.ping()
                log.info("CartService usando Redis.")
            except Exception as err:
                log.warning(f"No se pudo conectar a Redis ({err}). Usando carrito en memoria.")
                self.store = MemoryCartStore()
        else:
            self.store = MemoryCartStore()

    def _session(self, session_id: str) -> str:
        return session_id or "anon-session"

    def get(self, session_id: str) -> Cart:
        return self.store.get_or_create(self._session(session_id))

    def add(self, session_id: str, id: str, name: str, unit_price, image=None):
        cart = self.get(session_id)
        line = cart.add_item(id, name, unit_price, image)
        self.store.save(cart)
        log.info(f"Producto {id} agregado al carrito {cart.session_id} (cantidad {line.quantity})")
        return cart.to_summary()

    def update_qty(self, session_id: str, id: str, delta: int):
        cart = self.get(session_id)
        line = cart.update_quantity(id, delta)
        if line is None:
            log.info(f"Producto {id} no está en el carrito {cart.session_id}; nada que actualizar")
        self.store.save(cart)
        return cart.to_summary()

    def remove(self, session_id: str, id: str):
        cart = self.get(session_id)
        if cart.remove_item(id) is not None:
            log.info(f"Producto {id} quitado del carrito {cart.session_id}")
        self.store.save(cart)
        return cart.to_summary()

    def save(self, cart: Cart) -> None:
        self.store.save(cart)

    def clear(self, session_id: str):
        # Vacía el mismo objeto: si el checkout lo está cobrando, cart.clear() lo rechaza
        cart = self.get(session_id)
        cart.clear()
        self.store.save(cart)
        log.info(f"Carrito {cart.session_id} vaciado")
        return cart.to_summary()

    def show(self, session_id: str):
        return self.get(session_id).to_summary()
