# tests/test_synthesizer.py
"""Tests for synthesized key types: value semantics, construction, byte round trips."""

from __future__ import annotations

from typing import Annotated

import pytest
from pydantic import BaseModel, Field, ValidationError

from kadschema.errors.decode import TruncatedInput, ValidationFailed
from kadschema.errors.exceptions import RecordEncodeError
from kadschema.markers import Key, schema
from kadschema.pipeline import compile_schema
from kadschema.registry import SchemaRegistry
from kadschema.result import Failure, Success
from kadschema.scanner import scan_namespace
from kadschema.serialization.wire import CodecBuilder
from kadschema.synthesizer import (
    CompositeKey,
    FunctionKey,
    PerVariantKey,
    SingleFieldKey,
    render_value,
    synthesize_key_type,
)
from kadschema.validator import validate_definition
from tests.helpers import expect_failure, expect_success
from tests.helpers.sample_schemas import (
    Account,
    Article,
    Color,
    Order,
    Product,
    Shipment,
    User,
)
from tests.helpers.sample_schemas.catalog import Sensor


@schema
class Level(BaseModel):
    floor: Annotated[int, Key(), Field(ge=10)]


@schema(key_fn="mislabeled_key")
class Mislabeled(BaseModel):
    name: str


def mislabeled_key(item: Mislabeled) -> int:
    return item.name  # type: ignore[return-value]


def _encoded_str(text: str) -> bytes:
    raw = text.encode("utf-8")
    return len(raw).to_bytes(8, "little") + raw


# --------------------------------------------------------------------------- #
# Generated classes
# --------------------------------------------------------------------------- #


def test_key_type_names_and_bases(registry: SchemaRegistry) -> None:
    """Test each schema gets a nominal ``<Schema>Key`` class of the right kind."""
    user_key = registry.key_type(User)
    article_key = registry.key_type(Article)
    order_key = registry.key_type(Order)
    product_key = registry.key_type(Product)

    assert user_key.__name__ == "UserKey"
    assert user_key.__module__ == User.__module__
    assert issubclass(user_key, SingleFieldKey)
    assert issubclass(article_key, CompositeKey)
    assert issubclass(order_key, FunctionKey)
    assert issubclass(product_key, PerVariantKey)
    assert user_key.__schema__ is User


def test_synthesize_key_type_standalone() -> None:
    """Test synthesis can run outside the pipeline with a fresh builder."""
    (scanned,) = scan_namespace(User)
    definition = expect_success(scanned)
    shape = expect_success(validate_definition(definition))

    key_type = expect_success(synthesize_key_type(definition, shape, CodecBuilder()))

    assert key_type.__qualname__ == "UserKey"
    assert key_type("u1").to_bytes() == _encoded_str("u1")


# --------------------------------------------------------------------------- #
# Value semantics
# --------------------------------------------------------------------------- #


def test_single_key_equality_and_hash(registry: SchemaRegistry) -> None:
    """Test keys compare and hash as their underlying value."""
    UserKey = registry.key_type(User)
    key = UserKey("u1")

    assert key == UserKey("u1")
    assert key == "u1"
    assert key != UserKey("u2")
    assert hash(key) == hash("u1")
    assert len({key, UserKey("u1")}) == 1
    assert key.value == "u1"
    assert key.into_value() == "u1"


def test_keys_of_different_schemas_are_distinct(registry: SchemaRegistry) -> None:
    """Test equal values under different key types are not equal keys."""
    UserKey = registry.key_type(User)
    ProductKey = registry.key_type(Product)

    assert UserKey("x") != ProductKey.Digital("x")


def test_single_key_rendering(registry: SchemaRegistry) -> None:
    """Test str is the bare value and repr names the key type."""
    key = registry.key_type(User)("u1")

    assert str(key) == "u1"
    assert repr(key) == "UserKey('u1')"


def test_keys_are_immutable(registry: SchemaRegistry) -> None:
    """Test attributes can be neither set nor deleted."""
    key = registry.key_type(User)("u1")

    with pytest.raises(AttributeError):
        key._value = "u2"
    with pytest.raises(AttributeError):
        key.extra = 1  # type: ignore[attr-defined]
    with pytest.raises(AttributeError):
        del key._value


def test_constructor_validates_strictly(registry: SchemaRegistry) -> None:
    """Test the raising constructor rejects ill-typed values."""
    UserKey = registry.key_type(User)
    SensorKey = registry.key_type(Sensor)

    with pytest.raises(ValidationError):
        UserKey(5)
    with pytest.raises(ValidationError):
        SensorKey((70_000, 1))


def test_from_value_returns_result(registry: SchemaRegistry) -> None:
    """Test the non-raising constructor."""
    UserKey = registry.key_type(User)

    assert expect_success(UserKey.from_value("u1")) == UserKey("u1")
    assert isinstance(expect_failure(UserKey.from_value(5)), ValidationError)


def test_render_value() -> None:
    """Test segment rendering for bytes, enums, and plain values."""
    assert render_value(b"\x01\xff") == "01ff"
    assert render_value(Color.GREEN) == "GREEN"
    assert render_value(42) == "42"


# --------------------------------------------------------------------------- #
# Composite keys
# --------------------------------------------------------------------------- #


def test_composite_key_from_fields(registry: SchemaRegistry) -> None:
    """Test composite construction by field name and decomposition."""
    ArticleKey = registry.key_type(Article)
    key = ArticleKey.from_fields(category="tech", id=789)

    assert key == ("tech", 789)
    assert key == ArticleKey(("tech", 789))
    assert key.as_dict() == {"category": "tech", "id": 789}  # type: ignore[attr-defined]
    assert str(key) == "tech:789"
    assert repr(key) == "ArticleKey(category='tech', id=789)"


def test_composite_key_rejects_wrong_fields(registry: SchemaRegistry) -> None:
    """Test missing or unexpected field names raise TypeError."""
    ArticleKey = registry.key_type(Article)

    with pytest.raises(TypeError):
        ArticleKey.from_fields(category="tech")
    with pytest.raises(TypeError):
        ArticleKey.from_fields(category="tech", id=1, extra=2)


def test_composite_key_bytes_concatenate_segments(registry: SchemaRegistry) -> None:
    """Test composite key bytes are each segment's encoding, back to back."""
    ArticleKey = registry.key_type(Article)
    expected = _encoded_str("tech") + (789).to_bytes(8, "little", signed=True)

    assert ArticleKey(("tech", 789)).to_bytes() == expected
    assert expect_success(ArticleKey.from_bytes(expected)) == ("tech", 789)


def test_fixed_width_composite_key(registry: SchemaRegistry) -> None:
    """Test fixed-width segments use their declared widths."""
    SensorKey = registry.key_type(Sensor)

    assert SensorKey((1, 2)).to_bytes() == b"\x01\x00\x02"
    assert str(SensorKey((1, 2))) == "1:2"

    match SensorKey.from_bytes(b"\x01\x00"):
        case Failure(TruncatedInput(offset=offset, needed=needed, available=available)):
            assert (offset, needed, available) == (2, 1, 0)
        case other:
            pytest.fail(f"expected TruncatedInput, got {other}")


# --------------------------------------------------------------------------- #
# Key functions
# --------------------------------------------------------------------------- #


def test_function_key_from_instance(registry: SchemaRegistry) -> None:
    """Test a key function's return value becomes the key."""
    OrderKey = registry.key_type(Order)
    key = registry.key(Order(customer="alice", number=7))

    assert key == OrderKey("alice#7")
    assert key == "alice#7"


def test_function_key_with_tuple_return(registry: SchemaRegistry) -> None:
    """Test a tuple-returning key function yields a tuple-valued key."""
    key = registry.key(Shipment(carrier="ups", tracking=42))

    assert key == ("ups", 42)
    assert key is not None
    assert key.to_bytes() == _encoded_str("ups") + (42).to_bytes(8, "little", signed=True)


def test_function_key_wrong_return_type_raises() -> None:
    """Test a key function returning a value outside its annotation is an encode error."""
    artifacts = expect_success(compile_schema(Mislabeled))

    with pytest.raises(RecordEncodeError):
        artifacts.key(Mislabeled(name="oops"))


def test_key_bytes_failing_constraints_is_validation_failed() -> None:
    """Test decoded key values are validated against the field's constraints."""
    artifacts = expect_success(compile_schema(Level))
    LevelKey = artifacts.key_type

    assert expect_success(LevelKey.from_bytes((12).to_bytes(8, "little", signed=True))) == 12

    match LevelKey.from_bytes((5).to_bytes(8, "little", signed=True)):
        case Failure(ValidationFailed(type_name=type_name)):
            assert type_name == "LevelKey"
        case other:
            pytest.fail(f"expected ValidationFailed, got {other}")


# --------------------------------------------------------------------------- #
# Per-variant keys
# --------------------------------------------------------------------------- #


def test_per_variant_constructors(registry: SchemaRegistry) -> None:
    """Test each key-bearing variant gets a nested constructor class."""
    ProductKey = registry.key_type(Product)

    digital = ProductKey.Digital("sku-1")  # type: ignore[attr-defined]
    physical = ProductKey.Physical("0123")  # type: ignore[attr-defined]

    assert isinstance(digital, ProductKey)
    assert digital.variant == "Digital"
    assert physical.variant == "Physical"
    assert ProductKey.Digital.__qualname__ == "ProductKey.Digital"  # type: ignore[attr-defined]
    assert not hasattr(ProductKey, "Discontinued")
    assert str(digital) == "Digital:sku-1"
    assert repr(physical) == "ProductKey.Physical('0123')"


def test_per_variant_key_identity(registry: SchemaRegistry) -> None:
    """Test keys of different variants never compare equal, even with equal values."""
    ProductKey = registry.key_type(Product)

    assert ProductKey.Digital("a") == ProductKey.Digital("a")  # type: ignore[attr-defined]
    assert ProductKey.Digital("a") != ProductKey.Physical("a")  # type: ignore[attr-defined]
    assert ProductKey.Digital("a") == "a"  # type: ignore[attr-defined]


def test_per_variant_base_is_abstract(registry: SchemaRegistry) -> None:
    """Test the generated base class cannot be instantiated directly."""
    ProductKey = registry.key_type(Product)

    with pytest.raises(TypeError):
        ProductKey("sku-1")
    with pytest.raises(ValueError):
        ProductKey.constructor("Discontinued")  # type: ignore[attr-defined]
    assert ProductKey.constructor("Physical") is ProductKey.Physical  # type: ignore[attr-defined]


def test_per_variant_from_instance(registry: SchemaRegistry) -> None:
    """Test the active variant's key field is extracted; unit variants have none."""
    ProductKey = registry.key_type(Product)

    digital = registry.key(Product.Digital(sku="sku-1", price=5))
    physical = registry.key(Product.Physical(barcode="0123"))

    assert digital == ProductKey.Digital("sku-1")  # type: ignore[attr-defined]
    assert physical == ProductKey.Physical("0123")  # type: ignore[attr-defined]
    assert registry.key(Product.Discontinued()) is None


def test_per_variant_from_bytes_disambiguation(registry: SchemaRegistry) -> None:
    """Test key bytes decode to the first matching variant unless one is named."""
    ProductKey = registry.key_type(Product)
    data = _encoded_str("abc")

    first = expect_success(ProductKey.from_bytes(data))
    assert first.variant == "Digital"  # type: ignore[attr-defined]

    decoded = ProductKey.from_bytes(data, variant="Physical")  # type: ignore[call-arg]
    named = expect_success(decoded)
    assert named == ProductKey.Physical("abc")  # type: ignore[attr-defined]
    assert named.variant == "Physical"  # type: ignore[attr-defined]


def test_per_variant_from_bytes_reports_first_failure(registry: SchemaRegistry) -> None:
    """Test undecodable key bytes report the first constructor's decode error."""
    ProductKey = registry.key_type(Product)

    error = expect_failure(ProductKey.from_bytes(b"\x01"))

    assert error == TruncatedInput(offset=0, needed=8, available=1)


def test_per_variant_from_value(registry: SchemaRegistry) -> None:
    """Test the non-raising constructor tries each variant in order."""
    AccountKey = registry.key_type(Account)

    match AccountKey.from_value("user-9"):
        case Success(key):
            assert key == AccountKey.Registered("user-9")  # type: ignore[attr-defined]
        case Failure(error):
            pytest.fail(f"unexpected failure: {error}")

    assert isinstance(expect_failure(AccountKey.from_value(9)), ValidationError)
