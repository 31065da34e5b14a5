"""Tests for the cleanup sweeper.

Critical Invariants:
- Unresolved world or non-lockable block -> orphan, removed
- Unloaded region -> never an orphan, never removed
- Trust entries of owners left without containers are pruned (relations counted)
- Exactly one save when something was removed, none otherwise
- Periodic sweeps are capped and resume after the previous batch
"""

import threading

import pytest

from chestguard.cleanup import CleanupSweeper, CleanupType
from chestguard.core.identity import ContainerKey
from conftest import WORLD, place_block


class SaveCounter:
    def __init__(self, result=True):
        self.calls = 0
        self.result = result

    def __call__(self):
        self.calls += 1
        return self.result


@pytest.fixture
def saves():
    return SaveCounter()


@pytest.fixture
def sweeper(worlds, protection, trust, saves, scheduler):
    return CleanupSweeper(
        worlds, protection, trust, saves, scheduler, max_per_cycle=3, startup_delay=10.0, interval=60.0
    )


def test_unresolved_world_is_orphan(sweeper, protection, saves):
    key = ContainerKey("deleted_world", 0, 64, 0)
    protection.lock({key}, "o1", "abc")

    report = sweeper.run_manual()

    assert report.cleaned_containers == 1
    assert not protection.is_locked(key)
    assert saves.calls == 1


def test_block_no_longer_lockable_is_orphan(sweeper, overworld, protection):
    key = place_block(overworld, 0, 64, 0)
    protection.lock({key}, "o1", "abc")
    overworld.remove_block(0, 64, 0)

    assert sweeper.run_manual().cleaned_containers == 1
    assert not protection.is_locked(key)


def test_unloaded_region_is_never_orphan(sweeper, overworld, protection, saves):
    """CRITICAL: Keys in unloaded regions survive every sweep.

    Why: The sweep must not force-load regions, and absence of data is not absence of a block.
    """
    key = ContainerKey(WORLD, 100, 64, 100)
    protection.lock({key}, "o1", "abc")
    overworld.unload_region_at(100, 100)

    report = sweeper.run_manual()

    assert report.cleaned_containers == 0
    assert protection.is_locked(key)
    assert saves.calls == 0


def test_valid_container_is_kept(sweeper, overworld, protection, saves):
    key = place_block(overworld, 0, 64, 0, "BARREL")
    protection.lock({key}, "o1", "abc")

    report = sweeper.run_manual()
    assert report.total == 0
    assert protection.is_locked(key)
    assert saves.calls == 0


def test_trust_of_owner_without_containers_is_pruned(sweeper, overworld, protection, trust, saves):
    """CRITICAL: Removing an owner's last container drops their trust entry.

    Why: Trust entries are meaningless without containers.
    """
    kept = place_block(overworld, 0, 64, 0)
    protection.lock({kept}, "o2", "abc")
    gone = ContainerKey("deleted_world", 0, 0, 0)
    protection.lock({gone}, "o1", "abc")
    trust.trust("o1", "p1")
    trust.trust("o1", "p2")
    trust.trust("o2", "p1")

    report = sweeper.run_manual()

    assert report.cleaned_containers == 1
    assert report.cleaned_trust_relations == 2
    assert trust.trusted_by("o1") == frozenset()
    assert trust.trusted_by("o2") == {"p1"}
    assert saves.calls == 1


def test_trust_only_cleanup_still_saves(sweeper, trust, saves):
    trust.trust("o1", "p1")
    report = sweeper.run_manual()
    assert report.cleaned_containers == 0
    assert report.cleaned_trust_relations == 1
    assert saves.calls == 1


def test_failed_save_is_reported(worlds, protection, trust, scheduler):
    saves = SaveCounter(result=False)
    sweeper = CleanupSweeper(worlds, protection, trust, saves, scheduler)
    protection.lock({ContainerKey("gone", 0, 0, 0)}, "o1", "abc")

    report = sweeper.run_manual()
    assert report.cleaned_containers == 1
    assert not report.saved


def test_periodic_sweep_is_capped_and_resumes(sweeper, protection, overworld):
    """CRITICAL: Periodic sweeps inspect at most the cap and eventually cover every key.

    Why: Bounded pause time without starving entries beyond the cap.
    """
    keys = [ContainerKey("gone", i, 0, 0) for i in range(7)]
    for key in keys:
        protection.lock({key}, "o1", "abc")

    first = sweeper.run_periodic()
    assert first.inspected == 3
    assert first.cleaned_containers == 3
    assert len(protection) == 4

    sweeper.run_periodic()
    sweeper.run_periodic()
    assert len(protection) == 0


def test_periodic_cursor_wraps_around(sweeper, protection, overworld):
    keys = [place_block(overworld, i, 64, 0) for i in range(5)]
    for key in keys:
        protection.lock({key}, "o1", "abc")

    sweeper.run_periodic()  # keys 0..2
    sweeper.run_periodic()  # keys 3, 4, then 0
    overworld.remove_block(1, 64, 0)
    report = sweeper.run_periodic()  # resumes at key 1

    assert report.cleaned_containers == 1
    assert not protection.is_locked(keys[1])


def test_startup_and_manual_sweeps_are_unbounded(sweeper, protection):
    for i in range(10):
        protection.lock({ContainerKey("gone", i, 0, 0)}, "o1", "abc")

    report = sweeper.run(CleanupType.STARTUP)
    assert report.inspected == 10
    assert len(protection) == 0


def test_start_schedules_startup_and_periodic(sweeper, scheduler, protection):
    protection.lock({ContainerKey("gone", 0, 0, 0)}, "o1", "abc")
    sweeper.start()
    assert sweeper.running

    scheduler.advance(10.0)
    assert sweeper.last_report.cleanup_type is CleanupType.STARTUP
    assert len(protection) == 0

    scheduler.advance(50.0)
    assert sweeper.last_report.cleanup_type is CleanupType.PERIODIC


def test_shutdown_cancels_sweeps(sweeper, scheduler, protection):
    sweeper.start()
    sweeper.shutdown()
    protection.lock({ContainerKey("gone", 0, 0, 0)}, "o1", "abc")

    scheduler.advance(1000.0)
    assert sweeper.last_report is None
    assert protection.is_locked(ContainerKey("gone", 0, 0, 0))



def test_shutdown_waits_for_running_sweep(worlds, protection, trust, scheduler):
    """CRITICAL: shutdown returns only after an in-flight sweep has saved.

    Why: The final save and storage close follow shutdown; an unfinished sweep would lose
    its removals.
    """
    entered, release = threading.Event(), threading.Event()

    def slow_save():
        entered.set()
        release.wait(5)
        return True

    sweeper = CleanupSweeper(worlds, protection, trust, slow_save, scheduler)
    protection.lock({ContainerKey("gone", 0, 0, 0)}, "o1", "abc")
    sweep = threading.Thread(target=sweeper.run_manual)
    sweep.start()
    assert entered.wait(5)

    stopper = threading.Thread(target=sweeper.shutdown)
    stopper.start()
    stopper.join(0.2)
    assert stopper.is_alive()

    release.set()
    stopper.join(5)
    sweep.join(5)
    assert not stopper.is_alive()
    assert sweeper.last_report.saved

def test_periodic_disabled(worlds, protection, trust, saves, scheduler):
    sweeper = CleanupSweeper(
        worlds, protection, trust, saves, scheduler, startup_delay=1.0, interval=5.0, periodic_enabled=False
    )
    sweeper.start()
    assert scheduler.advance(100.0) == 1


def test_invalid_cap_rejected(worlds, protection, trust, saves, scheduler):
    with pytest.raises(ValueError):
        CleanupSweeper(worlds, protection, trust, saves, scheduler, max_per_cycle=0)
