from __future__ import annotations

import asyncio
import re

import pytest

from conftest import envelope
from rehabmonitor.errors import AuthorizationDeclined, DecodeError, MissingIdentity, WriteFailure
from rehabmonitor.ledger import MemoryGateway
from rehabmonitor.records import RecordIndex, new_identifier


def test_new_identifier_format() -> None:
    rid = new_identifier(1_700_000_000.123)
    assert re.fullmatch(r"1700000000123-[0-9a-z]{7}", rid)
    assert new_identifier() != new_identifier()


def test_missing_index_lists_nothing(index: RecordIndex) -> None:
    listing = asyncio.run(index.list_identifiers())
    assert listing.identifiers == ()
    assert listing.ok


def test_corrupt_index_lists_nothing_and_reports(gateway: MemoryGateway, index: RecordIndex) -> None:
    gateway.data["rehab_keys"] = b"{broken"
    listing = asyncio.run(index.list_identifiers())
    assert listing.identifiers == ()
    assert isinstance(listing.error, DecodeError)


def test_appends_preserve_order(gateway: MemoryGateway, index: RecordIndex) -> None:
    ids = ["1-a", "2-b", "3-c", "2-b"]

    async def run():
        for rid in ids:
            await index.append_identifier(rid, "0xabc")
        return await index.list_identifiers()

    assert asyncio.run(run()).identifiers == tuple(ids)
    assert gateway.writers["rehab_keys"] == "0xabc"


def test_append_refuses_to_overwrite_corrupt_index(gateway: MemoryGateway, index: RecordIndex) -> None:
    gateway.data["rehab_keys"] = b"not json"
    with pytest.raises(DecodeError):
        asyncio.run(index.append_identifier("x", "0xabc"))
    assert gateway.data["rehab_keys"] == b"not json"


def test_append_declined(gateway: MemoryGateway, index: RecordIndex) -> None:
    gateway.reject_writes = True
    with pytest.raises(AuthorizationDeclined):
        asyncio.run(index.append_identifier("x", "0xabc"))
    assert "rehab_keys" not in gateway.data


def test_append_without_identity(index: RecordIndex) -> None:
    with pytest.raises(MissingIdentity):
        asyncio.run(index.append_identifier("x", ""))


def test_append_write_failure() -> None:
    class Broken(MemoryGateway):
        async def set_data(self, key, value, identity):
            raise RuntimeError("out of gas")

    with pytest.raises(WriteFailure) as err:
        asyncio.run(RecordIndex(Broken()).append_identifier("x", "0xabc"))
    assert err.value.reason == "out of gas"


def test_lost_update_between_two_writers(gateway: MemoryGateway) -> None:
    first, second = RecordIndex(gateway), RecordIndex(gateway)

    async def run():
        stale = gateway.data.get("rehab_keys", b"")
        await first.append_identifier("one", "0xa")
        # second writer read before the first one wrote
        gateway.data["rehab_keys"], fresh = stale, gateway.data["rehab_keys"]
        await second.append_identifier("two", "0xb")
        return fresh, await first.list_identifiers()

    fresh, listing = asyncio.run(run())
    assert fresh == b'["one"]'
    assert listing.identifiers == ("two",)


def test_materialize_skips_missing_record(gateway: MemoryGateway, index: RecordIndex) -> None:
    gateway.data["rehab_keys"] = b'["a","b"]'
    gateway.data["rehab_a"] = envelope()
    records, error = asyncio.run(index.materialize())
    assert error is None
    assert [r.id for r in records] == ["a"]
    assert records[0].exercise_type == "Squat"


def test_materialize_skips_undecodable_and_unreadable(gateway: MemoryGateway) -> None:
    class Flaky(MemoryGateway):
        async def get_data(self, key):
            if key == "rehab_c":
                raise ConnectionError("timeout")
            return await super().get_data(key)

    flaky = Flaky(dict(gateway.data))
    flaky.data["rehab_keys"] = b'["a","b","c"]'
    flaky.data["rehab_a"] = envelope()
    flaky.data["rehab_b"] = b"garbage"
    flaky.data["rehab_c"] = envelope()
    records, _ = asyncio.run(RecordIndex(flaky).materialize())
    assert [r.id for r in records] == ["a"]


def test_materialize_duplicate_id_is_idempotent(gateway: MemoryGateway, index: RecordIndex) -> None:
    gateway.data["rehab_keys"] = b'["a","a"]'
    gateway.data["rehab_a"] = envelope()
    records, _ = asyncio.run(index.materialize())
    assert [r.id for r in records] == ["a"]


def test_add_record_writes_record_then_index(gateway: MemoryGateway, index: RecordIndex) -> None:
    from rehabmonitor.records import decode

    record = decode(envelope(), "r1")
    asyncio.run(index.add_record(record, "0xabc"))
    assert decode(gateway.data["rehab_r1"]) == record
    assert gateway.data["rehab_keys"] == b'["r1"]'


def test_custom_keys() -> None:
    gw = MemoryGateway()
    idx = RecordIndex(gw, index_key="sessions", record_prefix="session:")
    assert idx.record_key("x") == "session:x"
    asyncio.run(idx.append_identifier("x", "0xabc"))
    assert gw.data == {"sessions": b'["x"]'}


def test_deeply_nested_index_lists_nothing(gateway: MemoryGateway, index: RecordIndex) -> None:
    gateway.data["rehab_keys"] = b"[" * 100_000 + b"]" * 100_000
    listing = asyncio.run(index.list_identifiers())
    assert listing.identifiers == ()
    assert isinstance(listing.error, DecodeError)


def test_record_decode_error_names_custom_key() -> None:
    gw = MemoryGateway({"session:x": b"garbage"})
    idx = RecordIndex(gw, index_key="sessions", record_prefix="session:")
    with pytest.raises(DecodeError) as err:
        asyncio.run(idx.get_record("x"))
    assert err.value.key == "session:x"
