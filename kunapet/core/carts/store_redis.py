import json
import redis
from time import time
from kunapet.config import CART_TTL_SECONDS, CURRENCY
from kunapet.core.carts.models import Cart, CartLine
import logging

log = logging.getLogger(__name__)

LINE_FIELDS = ("id", "name", "unit_price", "quantity", "image", "updated_at")


class RedisCartStore:
    """Persistencia en Redis con TTL renovable en cada guardado."""
    def __init__(self, url="redis://localhost:6379/0", ttl_seconds=CART_TTL_SECONDS, client=None):
        self.client = client or redis.Redis.from_url(url, decode_responses=True)
        self.ttl = ttl_seconds

    def _key(self, session_id: str) -> str:
        return f"kunapet:cart:{session_id}"

    def get_or_create(self, session_id: str, currency: str = CURRENCY) -> Cart:
        raw = self.client.get(self._key(session_id))
        if raw:
            data = json.loads(raw)
            # La lista conserva el orden de inserción; el precio viaja como string
            lines = {}
            for item in data["items"]:
                line = CartLine(**{k: item[k] for k in LINE_FIELDS if k in item})
                lines[line.id] = line
            return Cart(
                session_id=session_id,
                lines=lines,
                currency=data.get("currency", currency),
                created_at=data.get("created_at", time()),
                updated_at=data.get("updated_at", time()),
                version=data.get("version", 1),
                last_action=data.get("last_action"),
            )
        cart = Cart(session_id=session_id, currency=currency)
        self.save(cart)
        return cart

    def save(self, cart: Cart) -> None:
        cart.updated_at = time()
        cart.version += 1
        data = {
            "session_id": cart.session_id,
            "currency": cart.currency,
            "version": cart.version,
            "created_at": cart.created_at,
            "updated_at": cart.updated_at,
            "last_action": cart.last_action,
            "items": [
                {**{k: getattr(line, k) for k in LINE_FIELDS}, "unit_price": str(line.unit_price)}
                for line in cart.lines.values()
            ],
        }
        serialized = json.dumps(data)
        key = self._key(cart.session_id)
        with self.client.pipeline() as pipe:
            pipe.set(key, serialized)
            pipe.expire(key, self.ttl)
            pipe.execute()
        log.info(f"Carrito {cart.session_id} actualizado en Redis. Versión {cart.version}")
