# tests/helpers/sample_schemas/__init__.py
"""A valid schema namespace covering every key shape.

Scan order (declaration order, then submodules):
User, Article, Product, Account, Order, Shipment, Palette,
then ``catalog``: TreeNode, Sensor.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated

from pydantic import BaseModel

from kadschema.markers import Key, TaggedUnion, Variant, schema
from kadschema.models.scalars import F32, I16, U8, U32


class Color(Enum):
    RED = "red"
    GREEN = "green"
    BLUE = "blue"


@schema
class User(BaseModel):
    id: Annotated[str, Key()]
    name: str = ""
    age: U8 = 0


@schema
class Article(BaseModel):
    category: Annotated[str, Key()]
    id: Annotated[int, Key()]
    title: str = ""
    tags: list[str] = []


@schema
class Product(TaggedUnion):
    class Digital(Variant):
        sku: Annotated[str, Key()]
        price: U32 = 0

    class Physical(Variant):
        __key__ = "barcode"

        barcode: str
        weight: F32 = 0.0

    class Discontinued(Variant):
        pass


@schema
class Account(TaggedUnion):
    class Registered(Variant):
        user_id: Annotated[str, Key()]
        email: str | None = None

    class Anonymous(Variant):
        pass


@schema(key_fn="order_key")
class Order(BaseModel):
    customer: str
    number: U32
    lines: dict[str, U32] = {}


def order_key(order: Order) -> str:
    return f"{order.customer}#{order.number}"


def shipment_key(shipment: Shipment) -> tuple[str, int]:
    return (shipment.carrier, shipment.tracking)


@schema(key_fn=shipment_key)
class Shipment(BaseModel):
    carrier: str
    tracking: int
    delivered: bool = False


@schema
class Palette(BaseModel):
    name: Annotated[str, Key()]
    primary: Color
    colors: frozenset[Color] = frozenset()
    weights: tuple[F32, I16] = (0.0, 0)
    history: tuple[int, ...] = ()
    owner: User | None = None
    product: Product | None = None
    blob: bytes = b""
    enabled: bool = True


@schema
class NotASchema:
    """Marked, but neither a model nor a tagged union: skipped by the scanner."""
