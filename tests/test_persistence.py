"""Tests for flushing, loading and the JSON backends."""

import json

import pytest

from asset_ledger.audit import AuditLogger
from asset_ledger.models.asset import LedgerState
from asset_ledger.models.audit import AuditEventType
from asset_ledger.orchestrator import SAMPLE_ASSETS, AssetLedger
from asset_ledger.services.storage import (
    JsonFileStateBackend,
    JsonLinesAuditStorage,
    MemoryStateBackend,
    PersistenceError,
)


class FailingBackend(MemoryStateBackend):
    """Backend whose writes fail until told otherwise."""

    def __init__(self):
        super().__init__()
        self.failing = True

    async def save(self, state: LedgerState) -> bool:
        if self.failing:
            raise PersistenceError("disk full")
        return await super().save(state)


class TestFlush:
    """Every mutation ends with a flush."""

    @pytest.mark.asyncio
    async def test_each_mutation_saves(self, ledger, backend, january):
        """Test that create, update and delete each write once."""
        asset = await ledger.records.create_asset({"source": "Cash", "amount": 1, "month": january})
        await ledger.records.update_asset(asset.id, {"amount": 2})
        await ledger.records.delete_asset(asset.id)
        assert backend.save_count == 3

    @pytest.mark.asyncio
    async def test_not_found_does_not_save(self, ledger, backend):
        """Test that negative results leave the document alone."""
        await ledger.records.update_asset(5, {"amount": 2})
        await ledger.records.delete_asset(5)
        assert backend.save_count == 0

    @pytest.mark.asyncio
    async def test_rename_cascade_is_one_write(self, ledger, backend, january):
        """Test that a rename and its cascade are committed together."""
        for _ in range(3):
            await ledger.records.create_asset({"source": "Cash", "amount": 1, "month": january})
        assert backend.save_count == 3

        await ledger.sources.rename_source("Cash", "Wallet")

        assert backend.save_count == 4
        saved = await backend.load()
        assert {asset.source for asset in saved.assets} == {"Wallet"}
        assert saved.sources.hidden == ["Cash"]

    @pytest.mark.asyncio
    async def test_refused_delete_does_not_save(self, ledger, backend, january):
        """Test that an in-use refusal writes nothing."""
        await ledger.records.create_asset({"source": "Cash", "amount": 1, "month": january})
        await ledger.sources.delete_source("Cash")
        assert backend.save_count == 1

    @pytest.mark.asyncio
    async def test_failed_flush_keeps_memory_state(self, clock, january):
        """Test that a write failure doesn't roll back the mutation."""
        ledger = AssetLedger(backend=FailingBackend(), clock=clock)

        asset = await ledger.records.create_asset({"source": "Cash", "amount": 1, "month": january})

        assert await ledger.records.get_asset(asset.id) == asset
        assert ledger.persistence.last_error == "disk full"
        assert await ledger.close() is False

    @pytest.mark.asyncio
    async def test_successful_flush_clears_error(self, clock, january):
        """Test that the error is recovered by the next good write."""
        backend = FailingBackend()
        ledger = AssetLedger(backend=backend, clock=clock)
        await ledger.records.create_asset({"source": "Cash", "amount": 1, "month": january})
        assert ledger.persistence.last_error is not None

        backend.failing = False
        assert await ledger.close() is True
        assert ledger.persistence.last_error is None


class TestRoundTrip:
    """Serialize, reload, compare."""

    @pytest.mark.asyncio
    async def test_reload_restores_assets_and_sources(self, ledger, backend, clock, january):
        """Test that records, labels and the id counter survive a reload."""
        await ledger.records.create_asset({"source": "Cash", "amount": 1000, "month": january})
        doomed = await ledger.records.create_asset({"source": "Vehicle", "amount": 5, "month": january})
        await ledger.records.delete_asset(doomed.id)
        await ledger.sources.add_source("Crypto")
        await ledger.sources.rename_source("Cash", "Wallet")
        await ledger.sources.delete_source("Real Estate")
        await ledger.close()

        reloaded = await AssetLedger(backend=backend, clock=clock).open()

        assert await reloaded.records.get_all_assets() == await ledger.records.get_all_assets()
        assert reloaded.sources.list_sources() == ledger.sources.list_sources()
        assert reloaded.sources.source_origin("Wallet") == "Cash"
        assert reloaded.records.next_id == 3

    @pytest.mark.asyncio
    async def test_context_manager_flushes_on_exit(self, backend, clock):
        """Test that leaving the context writes the document."""
        async with AssetLedger(backend=backend, clock=clock) as ledger:
            assert ledger.sources.list_sources()
        assert backend.save_count == 1


class TestSeeding:
    """Sample data for an empty ledger."""

    @pytest.mark.asyncio
    async def test_seeds_empty_ledger_once(self, backend, clock):
        """Test that samples are written with a single flush."""
        ledger = await AssetLedger(backend=backend, seed_sample_assets=True, clock=clock).open()

        assets = await ledger.records.get_all_assets()
        assert len(assets) == len(SAMPLE_ASSETS)
        assert backend.save_count == 1
        assert {asset.month_key for asset in assets} == {"2024-01"}

    @pytest.mark.asyncio
    async def test_does_not_seed_loaded_ledger(self, backend, clock, january):
        """Test that existing data is never mixed with samples."""
        first = AssetLedger(backend=backend, clock=clock)
        await first.records.create_asset({"source": "Cash", "amount": 1, "month": january})

        second = await AssetLedger(backend=backend, seed_sample_assets=True, clock=clock).open()
        assert len(await second.records.get_all_assets()) == 1


class TestJsonFileStateBackend:
    """Tests for the file backend."""

    @pytest.mark.asyncio
    async def test_missing_file_loads_none(self, tmp_path):
        backend = JsonFileStateBackend(tmp_path / "missing.json")
        assert await backend.load() is None

    @pytest.mark.asyncio
    async def test_empty_file_loads_none(self, tmp_path):
        path = tmp_path / "assets.json"
        path.write_text("", encoding="utf-8")
        assert await JsonFileStateBackend(path).load() is None

    @pytest.mark.asyncio
    async def test_corrupt_file_raises(self, tmp_path):
        """Test that a broken document is reported, not ignored."""
        path = tmp_path / "assets.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError):
            await JsonFileStateBackend(path).load()

    @pytest.mark.asyncio
    async def test_undecodable_file_raises(self, tmp_path):
        """Test that bytes that aren't UTF-8 are reported as a persistence error."""
        path = tmp_path / "assets.json"
        path.write_bytes(b"\xff\xfe{bad")
        with pytest.raises(PersistenceError):
            await JsonFileStateBackend(path).load()

    @pytest.mark.asyncio
    async def test_ledger_round_trip_through_file(self, tmp_path, clock, january):
        """Test the on-disk layout and a reload from it."""
        path = tmp_path / "nested" / "assets.json"
        ledger = AssetLedger(backend=JsonFileStateBackend(path), clock=clock)
        await ledger.records.create_asset({"source": "Cash", "amount": 1000, "month": january})
        await ledger.sources.rename_source("Cash", "Wallet")

        document = json.loads(path.read_text(encoding="utf-8"))
        assert set(document) == {"assets", "next_id", "sources"}
        assert document["sources"] == {
            "custom": ["Wallet"],
            "hidden": ["Cash"],
            "renamed_from": {"Wallet": "Cash"},
        }
        assert not (tmp_path / "nested" / "assets.json.tmp").exists()

        reloaded = await AssetLedger(backend=JsonFileStateBackend(path), clock=clock).open()
        assert (await reloaded.records.get_asset(1)).source == "Wallet"

    @pytest.mark.asyncio
    async def test_load_failure_is_raised_from_open(self, tmp_path, clock):
        """Test that a ledger refuses to start on a corrupt document."""
        path = tmp_path / "assets.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(PersistenceError):
            await AssetLedger(backend=JsonFileStateBackend(path), clock=clock).open()


class TestAuditTrail:
    """Audit events written to a JSON-lines file."""

    @pytest.mark.asyncio
    async def test_mutations_are_audited(self, tmp_path, backend, clock, january):
        """Test that record and source changes leave audit events."""
        storage = JsonLinesAuditStorage(tmp_path / "audit.jsonl")
        ledger = AssetLedger(backend=backend, audit_logger=AuditLogger(storage), clock=clock)

        asset = await ledger.records.create_asset({"source": "Cash", "amount": 1, "month": january})
        await ledger.sources.delete_source("Cash")
        await ledger.sources.rename_source("Cash", "Wallet")

        asset_events = await storage.get_events_by_entity("asset", str(asset.id))
        assert [e.event_type for e in asset_events] == [
            AuditEventType.ASSET_CREATED,
            AuditEventType.ASSET_UPDATED,
        ]

        source_events = await storage.get_events_by_entity("source", "Cash")
        assert source_events[0].event_type == AuditEventType.SOURCE_DELETE_REFUSED

        renamed = await storage.get_events_by_entity("source", "Wallet")
        assert [e.event_type for e in renamed] == [AuditEventType.SOURCE_RENAMED]

    @pytest.mark.asyncio
    async def test_failed_flush_is_audited(self, tmp_path, clock, january):
        """Test the persistence-failed warning event."""
        storage = JsonLinesAuditStorage(tmp_path / "audit.jsonl")
        ledger = AssetLedger(
            backend=FailingBackend(),
            audit_logger=AuditLogger(storage),
            clock=clock,
        )
        await ledger.records.create_asset({"source": "Cash", "amount": 1, "month": january})
        recent = await storage.get_recent_events()
        assert AuditEventType.PERSISTENCE_FAILED in {e.event_type for e in recent}

    @pytest.mark.asyncio
    async def test_undecodable_document_is_audited_on_open(self, tmp_path, clock):
        """Test that a load failure reaches the audit trail before raising."""
        path = tmp_path / "assets.json"
        path.write_bytes(b"\xff\xfe{bad")
        storage = JsonLinesAuditStorage(tmp_path / "audit.jsonl")
        ledger = AssetLedger(
            backend=JsonFileStateBackend(path),
            audit_logger=AuditLogger(storage),
            clock=clock,
        )

        with pytest.raises(PersistenceError):
            await ledger.open()

        recent = await storage.get_recent_events()
        assert [e.event_type for e in recent] == [AuditEventType.SYSTEM_ERROR]
        assert recent[0].details["error_type"] == "ledger_load_failed"
