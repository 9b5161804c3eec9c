from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from kunapet.core.carts.service import CartService
from kunapet.core.carts.store_memory import MemoryCartStore
from kunapet.core.carts.store_redis import RedisCartStore


@dataclass
class FakePipeline:
    client: "FakeRedisClient"
    ops: list = field(default_factory=list)

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> bool:
        return False

    def set(self, key: str, value: str) -> None:
        self.ops.append(("set", key, value))

    def expire(self, key: str, ttl: int) -> None:
        self.ops.append(("expire", key, ttl))

    def execute(self) -> list:
        for op, key, value in self.ops:
            if op == "set":
                self.client.data[key] = value
            else:
                self.client.expiry[key] = value
        results = [True] * len(self.ops)
        self.ops.clear()
        return results


@dataclass
class FakeRedisClient:
    data: dict[str, str] = field(default_factory=dict)
    expiry: dict[str, int] = field(default_factory=dict)
    alive: bool = True

    def ping(self) -> bool:
        if not self.alive:
            raise ConnectionError("redis down")
        return True

    def get(self, key: str):
        return self.data.get(key)

    def pipeline(self) -> FakePipeline:
        return FakePipeline(client=self)


def test_service_uses_redis_when_reachable() -> None:
    service = CartService(client=FakeRedisClient())

    assert isinstance(service.store, RedisCartStore)


def test_service_falls_back_to_memory_when_redis_is_down() -> None:
    service = CartService(client=FakeRedisClient(alive=False))

    assert isinstance(service.store, MemoryCartStore)


def test_cart_survives_between_service_instances() -> None:
    client = FakeRedisClient()
    service_a = CartService(client=client)
    service_b = CartService(client=client)

    service_a.add("s1", "b", "Correa", "15")
    service_a.add("s1", "a", "Croquetas", "20.50", image="a.png")
    service_a.add("s1", "b", "Correa", "15")

    cart = service_b.get("s1")
    assert [line.id for line in cart.lines.values()] == ["b", "a"]
    assert cart.lines["b"].quantity == 2
    assert cart.lines["a"].unit_price == Decimal("20.50")
    assert cart.lines["a"].image == "a.png"
    assert cart.last_action["action"] == "add"
    assert cart.totals().total == Decimal("60.50")


def test_save_renews_ttl() -> None:
    client = FakeRedisClient()
    store = RedisCartStore(client=client, ttl_seconds=120)

    cart = store.get_or_create("s2")
    cart.add_item("a", "Croquetas", 20)
    store.save(cart)

    assert client.expiry["kunapet:cart:s2"] == 120
    assert store.get_or_create("s2").version == cart.version


def test_clear_removes_persisted_cart() -> None:
    client = FakeRedisClient()
    service = CartService(client=client)
    service.add("s3", "a", "Croquetas", 20)

    summary = service.clear("s3")

    assert summary["items"] == []
    assert summary["last_action"]["action"] == "clear"
    assert service.get("s3").is_empty
