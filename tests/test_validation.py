"""Validation and data comparison - no database required."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from hollowdb.errors import NotFoundError, StorageError, ValidationError
from hollowdb.models.server import Server
from hollowdb.models.versioned_attributes import VersionedAttributes, canonical_json, parse_data
from hollowdb.pagination import Pagination
from hollowdb.services.versioned_attributes import VersionedAttributesService


@pytest.mark.asyncio
async def test_missing_namespace_never_touches_storage():
    session = AsyncMock(spec=AsyncSession)
    svc = VersionedAttributesService(session)

    with pytest.raises(ValidationError, match="namespace"):
        await svc.create(Server(id=uuid.uuid4()), "", {"a": 1})
    with pytest.raises(ValidationError, match="namespace"):
        await svc.create(Server(id=uuid.uuid4()), None, {"a": 1})

    assert session.method_calls == []


def test_validation_error_message():
    err = ValidationError("namespace", "VersionedAttributes")
    assert str(err) == "validation failed: namespace is a required VersionedAttributes attribute"
    assert isinstance(err, ValueError)


def test_not_found_error_message():
    sid = uuid.uuid4()
    err = NotFoundError("Server", sid)
    assert str(err) == f"Server not found: {sid}"
    assert err.identifier == sid


def test_storage_error_is_ioerror():
    assert issubclass(StorageError, IOError)


def test_canonical_json_ignores_key_order_and_whitespace():
    assert canonical_json({"a": 1, "b": {"y": 2, "x": 1}}) == canonical_json({"b": {"x": 1, "y": 2}, "a": 1})
    assert canonical_json(parse_data(b'{ "a" : 1 }')) == canonical_json({"a": 1})
    assert canonical_json([1, 2]) != canonical_json([2, 1])
    assert canonical_json({"a": 1}) != canonical_json({"a": "1"})


def test_same_data():
    va = VersionedAttributes(namespace="ns", data={"version": "1.0"})
    assert va.same_data({"version": "1.0"})
    assert not va.same_data({"version": "1.1"})


def test_parse_data_passthrough():
    value = {"a": [1, 2]}
    assert parse_data(value) is value
    assert parse_data(bytearray(b"[1, 2]")) == [1, 2]


def test_parse_data_invalid():
    with pytest.raises(ValidationError) as exc:
        parse_data(b"{")
    assert exc.value.field == "data"


def test_pagination_defaults():
    p = Pagination()
    assert p.limit is None
    assert p.offset == 0


def test_pagination_offset():
    assert Pagination(limit=10, page=3).offset == 20


@pytest.mark.parametrize("kwargs,field", [
    ({"limit": 0}, "limit"),
    ({"limit": -5}, "limit"),
    ({"limit": 10, "page": 0}, "page"),
])
def test_pagination_rejects_bad_values(kwargs, field):
    with pytest.raises(ValidationError) as exc:
        Pagination(**kwargs)
    assert exc.value.field == field


def test_parse_data_rejects_non_json_values():
    for bad in ({"a": {1, 2}}, object(), float("inf"), b"[NaN]"):
        with pytest.raises(ValidationError) as exc:
            parse_data(bad)
        assert exc.value.field == "data"


def _failing_session(**failures):
    """Mocked session whose named coroutine methods raise OperationalError."""
    session = AsyncMock(spec=AsyncSession)
    no_current = MagicMock()
    no_current.scalar_one_or_none.return_value = None
    session.execute.return_value = no_current
    for name in failures:
        getattr(session, name).side_effect = OperationalError(
            "SELECT 1", {}, Exception("connection refused")
        )
    return session


@pytest.mark.asyncio
async def test_create_wraps_failed_read():
    svc = VersionedAttributesService(_failing_session(execute=True))
    with pytest.raises(StorageError) as exc:
        await svc.create(Server(id=uuid.uuid4()), "inventory.bios", {"a": 1})
    assert isinstance(exc.value, IOError)
    assert isinstance(exc.value.__cause__, OperationalError)
    assert "connection refused" in str(exc.value)


@pytest.mark.asyncio
async def test_create_wraps_failed_flush():
    session = _failing_session(flush=True)
    svc = VersionedAttributesService(session)
    with pytest.raises(StorageError) as exc:
        await svc.create(Server(id=uuid.uuid4()), "inventory.bios", {"a": 1})
    assert isinstance(exc.value.__cause__, OperationalError)
    session.add.assert_called_once()


@pytest.mark.asyncio
async def test_get_current_wraps_failure():
    svc = VersionedAttributesService(_failing_session(execute=True))
    with pytest.raises(StorageError) as exc:
        await svc.get_current(uuid.uuid4(), "inventory.bios")
    assert isinstance(exc.value.__cause__, OperationalError)


@pytest.mark.asyncio
async def test_get_wraps_failure():
    svc = VersionedAttributesService(_failing_session(scalar=True))
    with pytest.raises(StorageError) as exc:
        await svc.get(uuid.uuid4(), "inventory.bios")
    assert isinstance(exc.value.__cause__, OperationalError)


@pytest.mark.asyncio
async def test_list_wraps_failure():
    svc = VersionedAttributesService(_failing_session(scalar=True))
    with pytest.raises(StorageError) as exc:
        await svc.list(uuid.uuid4())
    assert isinstance(exc.value.__cause__, OperationalError)
