"""Tests for write conditions and the in-memory store."""

import pytest

from leaselock import Absent, AllOf, AnyOf, AtMost, ConditionFailedError, Equals, MemoryStore


def test_absent_condition() -> None:
    """Test that Absent holds only when there is no record."""
    assert Absent().evaluate(None)
    assert not Absent().evaluate({"w": "a"})


def test_field_conditions_fail_on_absent_record() -> None:
    """Test that field comparisons never hold for a missing record."""
    assert not Equals("w", "a").evaluate(None)
    assert not AtMost("e", 10).evaluate(None)


def test_field_conditions() -> None:
    """Test Equals and AtMost against an existing record."""
    item = {"w": "a", "e": 10}
    assert Equals("w", "a").evaluate(item)
    assert not Equals("w", "b").evaluate(item)
    assert not Equals("missing", None).evaluate(item)
    assert AtMost("e", 10).evaluate(item)
    assert AtMost("e", 11).evaluate(item)
    assert not AtMost("e", 9).evaluate(item)


def test_condition_operators() -> None:
    """Test that | and & build AnyOf and AllOf."""
    either = Absent() | Equals("w", "a")
    both = Equals("w", "a") & AtMost("e", 5)

    assert isinstance(either, AnyOf)
    assert isinstance(both, AllOf)
    assert either.evaluate(None)
    assert either.evaluate({"w": "a"})
    assert not either.evaluate({"w": "b"})
    assert both.evaluate({"w": "a", "e": 5})
    assert not both.evaluate({"w": "a", "e": 6})


def test_empty_composites_rejected() -> None:
    """Test that composites need at least one condition."""
    with pytest.raises(ValueError):
        AnyOf()
    with pytest.raises(ValueError):
        AllOf()


@pytest.mark.asyncio
async def test_read_missing_key() -> None:
    """Test reading a key that was never written."""
    store = MemoryStore()
    assert await store.read("nope") is None


@pytest.mark.asyncio
async def test_put_and_read() -> None:
    """Test unconditional put replaces the whole record."""
    store = MemoryStore()
    await store.put("k1", {"v": 1, "e": 5})
    await store.put("k1", {"v": 2})

    assert await store.read("k1") == {"v": 2}


@pytest.mark.asyncio
async def test_records_are_copied() -> None:
    """Test that callers cannot mutate stored records."""
    store = MemoryStore()
    fields = {"v": [1, 2]}
    await store.put("k1", fields)
    fields["v"].append(3)

    record = await store.read("k1")
    assert record == {"v": [1, 2]}
    record["v"].append(4)
    assert await store.read("k1") == {"v": [1, 2]}


@pytest.mark.asyncio
async def test_conditional_upsert_creates_and_merges() -> None:
    """Test that upsert creates missing records and merges into existing ones."""
    store = MemoryStore()
    await store.conditional_upsert("k1", {"w": "a", "e": 1}, Absent())
    await store.conditional_upsert("k1", {"e": 2}, Equals("w", "a"))

    assert await store.read("k1") == {"w": "a", "e": 2}


@pytest.mark.asyncio
async def test_conditional_upsert_condition_failed() -> None:
    """Test that a failed condition leaves the record untouched."""
    store = MemoryStore()
    await store.put("k1", {"w": "a", "e": 1})

    with pytest.raises(ConditionFailedError) as exc_info:
        await store.conditional_upsert("k1", {"w": "b"}, Absent())

    assert exc_info.value.key == "k1"
    assert await store.read("k1") == {"w": "a", "e": 1}


@pytest.mark.asyncio
async def test_conditional_delete() -> None:
    """Test conditional delete on match, mismatch and missing record."""
    store = MemoryStore()
    await store.put("k1", {"lid": "t1"})

    with pytest.raises(ConditionFailedError):
        await store.conditional_delete("k1", Equals("lid", "t2"))
    assert await store.read("k1") is not None

    await store.conditional_delete("k1", Equals("lid", "t1"))
    assert await store.read("k1") is None

    with pytest.raises(ConditionFailedError):
        await store.conditional_delete("k1", Equals("lid", "t1"))


@pytest.mark.asyncio
async def test_keys_and_clear() -> None:
    """Test listing and clearing stored keys."""
    store = MemoryStore()
    await store.put("a", {})
    await store.put("b", {})

    assert await store.keys() == {"a", "b"}
    await store.clear()
    assert await store.keys() == set()
