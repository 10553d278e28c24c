"""Tests for the epoch sync engine."""

from __future__ import annotations

import threading
from collections.abc import Iterable

import pytest

from graffiti_sync.client.api import MalformedResponse, RawSlot, RemoteUnavailable
from graffiti_sync.core.config import SyncConfig
from graffiti_sync.core.types import (
    EpochFilter,
    EpochRef,
    LatestFinalized,
    NumberedEpoch,
    ResumePolicy,
    SyncPhase,
)
from graffiti_sync.sync.engine import SyncEngine
from graffiti_sync.sync.types import PersistenceError, SlotRecord, SyncAbortedError


def raw(epoch: int, slot: int, graffiti: str = "foo") -> RawSlot:
    return RawSlot(
        epoch=epoch,
        slot=slot,
        graffiti_text=graffiti,
        proposer=slot * 10,
        exec_fee_recipient="0xfee",
        exec_block_hash="",
        exec_block_number=0,
    )


def stored(epoch: int, slot: int) -> SlotRecord:
    return SlotRecord(epoch=epoch, slot_number=slot, graffiti="old", proposer=0)


class FakeClient:
    """In-memory explorer."""

    def __init__(
        self,
        finalized: int,
        epochs: dict[int | str, list[RawSlot]] | None = None,
        failing_epochs: Iterable[int] = (),
        finalized_error: Exception | None = None,
    ) -> None:
        self.finalized = finalized
        self.epochs = epochs or {}
        self.failing_epochs = set(failing_epochs)
        self.finalized_error = finalized_error
        self.calls: list[EpochRef] = []
        self.finalized_calls = 0

    def fetch_finalized_epoch(self) -> int:
        self.finalized_calls += 1
        if self.finalized_error:
            raise self.finalized_error
        return self.finalized

    def fetch_epoch(self, ref: EpochRef) -> list[RawSlot]:
        self.calls.append(ref)
        key: int | str = ref.path_segment if isinstance(ref, LatestFinalized) else ref.number
        if key in self.failing_epochs:
            raise RemoteUnavailable(f"epoch {key} unavailable")
        return list(self.epochs.get(key, []))

    def close(self) -> None:
        pass


class FakeStore:
    """In-memory slot store."""

    def __init__(
        self,
        records: Iterable[SlotRecord] = (),
        failing_epochs: Iterable[int] = (),
        read_error: Exception | None = None,
    ) -> None:
        self.records = list(records)
        self.failing_epochs = set(failing_epochs)
        self.read_error = read_error
        self.batches: list[list[SlotRecord]] = []

    def insert_many(self, records: Iterable[SlotRecord]) -> int:
        batch = list(records)
        if any(r.epoch in self.failing_epochs for r in batch):
            raise PersistenceError("disk full")
        self.batches.append(batch)
        self.records.extend(batch)
        return len(batch)

    def latest_synced_epoch(self) -> int | None:
        if self.read_error:
            raise self.read_error
        return max((r.epoch for r in self.records), default=None)

    def query(self, epoch_filter: EpochFilter) -> list[SlotRecord]:
        return list(self.records)


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


def make_engine(
    client: FakeClient,
    store: FakeStore,
    sleep: SleepRecorder,
    **config: object,
) -> SyncEngine:
    return SyncEngine(client, store, SyncConfig(**config), sleep=sleep)  # type: ignore[arg-type]


class TestCursorResolution:
    """Tests for where a run starts."""

    def test_empty_store_starts_at_finalized(self, sleep: SleepRecorder) -> None:
        """Should fetch 'finalized' literally and walk exactly one epoch."""
        client = FakeClient(
            finalized=100,
            epochs={"finalized": [raw(100, 3200), raw(100, 3201, "")]},
        )
        store = FakeStore()

        result = make_engine(client, store, sleep).sync()

        assert client.calls == [LatestFinalized()]
        assert result.epochs == [100]
        assert result.start_epoch == 100
        assert [r.slot_number for r in result.records] == [3200]
        assert store.records == result.records
        assert sleep.calls == []
        assert result.phase is SyncPhase.COMPLETED

    def test_empty_store_empty_finalized_epoch(self, sleep: SleepRecorder) -> None:
        """Should fall back to the boundary number when the first epoch is empty."""
        client = FakeClient(finalized=100, epochs={"finalized": []})

        result = make_engine(client, FakeStore(), sleep).sync()

        assert result.epochs == [100]
        assert result.records == []
        assert client.calls == [LatestFinalized()]

    def test_inclusive_resume_refetches_last_epoch(self, sleep: SleepRecorder) -> None:
        """Should start at the highest stored epoch by default."""
        client = FakeClient(finalized=6)
        store = FakeStore([stored(4, 1), stored(5, 2)])

        make_engine(client, store, sleep).sync()

        assert client.calls == [NumberedEpoch(5), NumberedEpoch(6)]

    def test_exclusive_resume_skips_last_epoch(self, sleep: SleepRecorder) -> None:
        """Should start one past the highest stored epoch when configured."""
        client = FakeClient(finalized=6)
        store = FakeStore([stored(4, 1)])

        make_engine(client, store, sleep, resume_policy=ResumePolicy.EXCLUSIVE).sync()

        assert client.calls == [NumberedEpoch(5), NumberedEpoch(6)]

    def test_cursor_ahead_of_boundary(self, sleep: SleepRecorder) -> None:
        """Should walk zero epochs and succeed when the store is ahead."""
        client = FakeClient(finalized=8)
        store = FakeStore([stored(10, 1)])

        result = make_engine(client, store, sleep).sync()

        assert client.calls == []
        assert result.records == []
        assert result.epochs == []
        assert result.phase is SyncPhase.COMPLETED
        assert result.success is True
        assert sleep.calls == []


class TestWalk:
    """Tests for the epoch walk."""

    def test_walks_each_epoch_once_in_order(self, sleep: SleepRecorder) -> None:
        """Should fetch E..T inclusive and pause between fetches."""
        client = FakeClient(finalized=7)
        store = FakeStore([stored(4, 1)])

        result = make_engine(client, store, sleep, request_interval=1.0).sync()

        assert client.calls == [NumberedEpoch(e) for e in (4, 5, 6, 7)]
        assert result.epochs == [4, 5, 6, 7]
        assert sleep.calls == [1.0, 1.0, 1.0]
        assert result.finalized_epoch == 7

    def test_empty_epoch_still_advances(self, sleep: SleepRecorder) -> None:
        """Should move past epochs without graffiti."""
        client = FakeClient(finalized=3, epochs={2: [], 3: [raw(3, 96)]})
        store = FakeStore([stored(2, 64)])

        result = make_engine(client, store, sleep).sync()

        assert result.epochs == [2, 3]
        assert [r.epoch for r in result.records] == [3]

    def test_merges_refetched_and_new_epochs(self, sleep: SleepRecorder) -> None:
        """Store holds {1,1,2}; finalized 3; epoch 3 has one empty entry."""
        client = FakeClient(
            finalized=3,
            epochs={
                2: [raw(2, 64, "again")],
                3: [raw(3, 96, "fresh"), raw(3, 97, "")],
            },
        )
        store = FakeStore([stored(1, 32), stored(1, 33), stored(2, 64)])

        result = make_engine(client, store, sleep).sync()

        assert client.calls == [NumberedEpoch(2), NumberedEpoch(3)]
        assert [(r.epoch, r.slot_number, r.graffiti) for r in result.records] == [
            (2, 64, "again"),
            (3, 96, "fresh"),
        ]
        assert store.batches[-1] == [r for r in result.records if r.epoch == 3]
        assert all(r.graffiti for r in store.records)

    def test_skips_write_for_epoch_without_graffiti(self, sleep: SleepRecorder) -> None:
        client = FakeClient(finalized=2, epochs={2: [raw(2, 64, "")]})
        store = FakeStore([stored(2, 1)])

        make_engine(client, store, sleep).sync()

        assert store.batches == []


class TestFailures:
    """Tests for the failure policy."""

    def test_write_failure_does_not_stop_walk(self, sleep: SleepRecorder) -> None:
        """Should record the failed write and keep the records in the result."""
        client = FakeClient(
            finalized=6,
            epochs={4: [raw(4, 1)], 5: [raw(5, 2)], 6: [raw(6, 3)]},
        )
        store = FakeStore([stored(4, 0)], failing_epochs=[5])

        result = make_engine(client, store, sleep).sync()

        assert result.epochs == [4, 5, 6]
        assert [r.epoch for r in result.records] == [4, 5, 6]
        assert len(result.errors) == 1
        assert "Epoch 5" in result.errors[0]
        assert 5 not in {r.epoch for r in store.records}
        assert result.phase is SyncPhase.COMPLETED
        assert result.success is False

    def test_failed_write_is_retried_next_run(self, sleep: SleepRecorder) -> None:
        """The next run resumes at the last epoch that made it to the store."""
        client = FakeClient(finalized=5, epochs={4: [raw(4, 1)], 5: [raw(5, 2)]})
        store = FakeStore([stored(3, 0)], failing_epochs=[5])
        make_engine(client, store, sleep).sync()

        store.failing_epochs.clear()
        client.calls.clear()
        make_engine(client, store, sleep).sync()

        assert client.calls[0] == NumberedEpoch(4)
        assert NumberedEpoch(5) in client.calls

    def test_fetch_failure_aborts_and_keeps_progress(self, sleep: SleepRecorder) -> None:
        """Should abort on a remote failure, leaving earlier epochs stored."""
        client = FakeClient(
            finalized=7,
            epochs={4: [raw(4, 1)], 5: [raw(5, 2)]},
            failing_epochs=[6],
        )
        store = FakeStore([stored(4, 0)])
        engine = make_engine(client, store, sleep)

        with pytest.raises(SyncAbortedError) as exc_info:
            engine.sync()

        assert isinstance(exc_info.value.__cause__, RemoteUnavailable)
        assert exc_info.value.result.epochs == [4, 5]
        assert exc_info.value.result.phase is SyncPhase.ABORTED
        assert engine.phase is SyncPhase.ABORTED
        assert NumberedEpoch(7) not in client.calls
        assert {r.epoch for r in store.records} == {4, 5}

    def test_boundary_failure_aborts_before_walk(self, sleep: SleepRecorder) -> None:
        client = FakeClient(finalized=0, finalized_error=RemoteUnavailable("down"))

        with pytest.raises(SyncAbortedError) as exc_info:
            make_engine(client, FakeStore([stored(1, 1)]), sleep).sync()

        assert isinstance(exc_info.value.__cause__, RemoteUnavailable)
        assert client.calls == []

    def test_malformed_boundary_aborts(self, sleep: SleepRecorder) -> None:
        client = FakeClient(finalized=0, finalized_error=MalformedResponse("no epoch"))

        with pytest.raises(SyncAbortedError) as exc_info:
            make_engine(client, FakeStore(), sleep).sync()

        assert isinstance(exc_info.value.__cause__, MalformedResponse)

    def test_store_read_failure_aborts_first(self, sleep: SleepRecorder) -> None:
        """Should not contact the explorer when the cursor cannot be read."""
        client = FakeClient(finalized=5)
        store = FakeStore(read_error=PersistenceError("locked"))

        with pytest.raises(SyncAbortedError) as exc_info:
            make_engine(client, store, sleep).sync()

        assert isinstance(exc_info.value.__cause__, PersistenceError)
        assert exc_info.value.result.phase is SyncPhase.ABORTED
        assert client.finalized_calls == 0


class TestCancellationAndPhases:
    """Tests for cancellation and phase reporting."""

    def test_cancel_before_start(self, sleep: SleepRecorder) -> None:
        client = FakeClient(finalized=5)
        event = threading.Event()
        event.set()

        result = make_engine(client, FakeStore([stored(3, 1)]), sleep).sync(event)

        assert client.calls == []
        assert result.phase is SyncPhase.CANCELLED

    def test_cancel_between_epochs(self) -> None:
        """Should stop at the next epoch boundary once the event is set."""
        client = FakeClient(finalized=9)
        event = threading.Event()

        def on_phase(phase: SyncPhase) -> None:
            if phase is SyncPhase.WAITING:
                event.set()

        engine = SyncEngine(
            client,
            FakeStore([stored(3, 1)]),
            SyncConfig(request_interval=5.0),
            phase_callback=on_phase,
        )

        result = engine.sync(event)

        assert client.calls == [NumberedEpoch(3)]
        assert result.epochs == [3]
        assert result.phase is SyncPhase.CANCELLED

    def test_phase_sequence(self, sleep: SleepRecorder) -> None:
        phases: list[SyncPhase] = []
        client = FakeClient(finalized=2)
        engine = SyncEngine(
            client,
            FakeStore([stored(1, 1)]),
            SyncConfig(request_interval=0),
            sleep=sleep,
            phase_callback=phases.append,
        )

        engine.sync()

        assert phases == [
            SyncPhase.RESOLVING_CURSOR,
            SyncPhase.RESOLVING_BOUNDARY,
            SyncPhase.WALKING,
            SyncPhase.WAITING,
            SyncPhase.WALKING,
            SyncPhase.COMPLETED,
        ]
