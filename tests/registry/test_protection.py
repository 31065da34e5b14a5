"""Tests for ProtectionRegistry.

Critical Invariants:
- lock() on several keys is all-or-nothing
- A second lock on a locked key fails and keeps the first record
- unlock() verifies the secret and upgrades legacy plaintext on match
- Owner and secret always exist together for a key
- Concurrent lockers of the same container: exactly one wins, never a torn pair
"""

import threading

from chestguard.core.identity import ContainerKey
from chestguard.core.secrets import is_legacy_plaintext, verify_secret
from chestguard.registry import ContainerRecord, ProtectionRegistry

K1 = ContainerKey("overworld", 0, 64, 0)
K2 = ContainerKey("overworld", 1, 64, 0)
K3 = ContainerKey("overworld", 5, 64, 5)


def test_lock_then_query(protection):
    assert protection.lock({K1}, "o1", "abc")

    assert protection.is_locked(K1)
    assert protection.owner_of(K1) == "o1"
    assert protection.is_owner(K1, "o1")
    assert not protection.is_owner(K1, "o2")
    assert not protection.is_locked(K2)
    assert protection.owner_of(K2) is None


def test_secret_is_stored_hashed(protection):
    protection.lock({K1}, "o1", "abc")
    record = protection.record_of(K1)
    assert record.secret_record != "abc"
    assert not record.is_legacy
    assert verify_secret("abc", record.secret_record)


def test_second_lock_fails_and_keeps_first_record(protection):
    """CRITICAL: lock is never successful twice on one key.

    Why: A second locker would otherwise steal the container.
    """
    assert protection.lock({K1}, "o1", "abc")
    first = protection.record_of(K1)

    assert not protection.lock({K1}, "o2", "xyz")
    assert protection.record_of(K1) is first


def test_multi_key_lock_is_all_or_nothing(protection):
    """CRITICAL: If any key is already locked, no key is inserted.

    Why: A partially locked pair would be a torn container.
    """
    protection.lock({K2}, "o1", "abc")

    assert not protection.lock({K1, K2}, "o2", "xyz")
    assert not protection.is_locked(K1)
    assert protection.owner_of(K2) == "o1"


def test_paired_halves_get_independent_salts(protection):
    protection.lock({K1, K2}, "o1", "abc")
    assert protection.record_of(K1).secret_record != protection.record_of(K2).secret_record


def test_lock_rejects_empty_input(protection):
    assert not protection.lock(set(), "o1", "abc")
    assert not protection.lock({K1}, "", "abc")
    assert not protection.lock({K1}, "o1", "")


def test_unlock_verifies_secret(protection):
    protection.lock({K1}, "o1", "abc")

    assert not protection.unlock(K1, "o1", "wrong")
    assert protection.is_locked(K1)
    assert protection.unlock(K1, "o1", "abc")
    # Removal is the caller's job
    assert protection.is_locked(K1)


def test_unlock_missing_key(protection):
    assert not protection.unlock(K1, "o1", "abc")


def test_unlock_migrates_legacy_plaintext(protection):
    """CRITICAL: A verified legacy record is re-hashed in place.

    Why: Plaintext secrets must disappear from storage as they are used.
    """
    protection.restore({K1: ContainerRecord("o1", "abc", "Loot")})

    assert protection.unlock(K1, "o1", "abc")

    record = protection.record_of(K1)
    assert not is_legacy_plaintext(record.secret_record)
    assert verify_secret("abc", record.secret_record)
    assert record.owner_id == "o1"
    assert record.display_name == "Loot"


def test_failed_legacy_unlock_keeps_plaintext(protection):
    protection.restore({K1: ContainerRecord("o1", "abc")})
    assert not protection.unlock(K1, "o1", "nope")
    assert protection.record_of(K1).secret_record == "abc"


def test_migrate_plaintext_secrets(protection):
    protection.restore(
        {
            K1: ContainerRecord("o1", "abc"),
            K2: ContainerRecord("o1", "abc"),
            K3: ContainerRecord("o2", "00ff:" + "0" * 64),
        }
    )

    assert protection.migrate_plaintext_secrets() == 2
    assert all(not record.is_legacy for record in protection.snapshot().values())
    assert verify_secret("abc", protection.record_of(K1).secret_record)
    assert protection.migrate_plaintext_secrets() == 0


def test_remove_protection_never_fails(protection):
    protection.remove_protection(K1)
    protection.lock({K1}, "o1", "abc")
    protection.remove_protection(K1)
    assert not protection.is_locked(K1)


def test_remove_all_counts_removed(protection):
    protection.lock({K1, K2}, "o1", "abc")
    assert protection.remove_all({K1, K2, K3}) == 2
    assert len(protection) == 0


def test_remove_if_checks_current_record(protection):
    protection.lock({K1}, "o1", "abc")
    assert not protection.remove_if(K1, lambda record: record.owner_id == "o2")
    assert protection.remove_if(K1, lambda record: record.owner_id == "o1")
    assert not protection.is_locked(K1)


def test_names(protection):
    assert not protection.set_name(K1, "Loot")
    protection.lock({K1}, "o1", "abc")

    assert protection.set_name(K1, "Loot")
    assert protection.name_of(K1) == "Loot"
    assert protection.set_name(K1, None)
    assert protection.name_of(K1) is None


def test_owner_queries(protection):
    protection.lock({K1, K2}, "o1", "abc")
    protection.lock({K3}, "o2", "abc")

    assert protection.owners() == {"o1", "o2"}
    assert protection.count_owned_by("o1") == 2
    assert protection.count_owned_by("o3") == 0
    assert protection.first_locked({K3, K2}) == K2
    assert protection.keys() == sorted([K1, K2, K3])


def test_snapshot_is_a_copy(protection):
    protection.lock({K1}, "o1", "abc")
    snapshot = protection.snapshot()
    protection.remove_protection(K1)
    assert K1 in snapshot


def test_concurrent_lockers_one_winner():
    """CRITICAL: Racing paired locks never produce a torn or mixed pair.

    Why: Multi-key lock runs in one critical section.
    """
    for _ in range(20):
        registry = ProtectionRegistry()
        barrier = threading.Barrier(8)
        results: list[bool] = []

        def attempt(owner: str, registry: ProtectionRegistry = registry, barrier=barrier) -> None:
            barrier.wait()
            results.append(registry.lock({K1, K2}, owner, "abc"))

        threads = [threading.Thread(target=attempt, args=(f"o{i}",)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1
        assert registry.owner_of(K1) == registry.owner_of(K2) is not None


def test_readers_never_see_half_a_lock():
    """CRITICAL: No reader observes exactly one half locked after lock() returns.

    Why: Steady-state torn pairs are forbidden.
    """
    registry = ProtectionRegistry()
    stop = threading.Event()
    torn: list[bool] = []

    def reader() -> None:
        while not stop.is_set():
            snapshot = registry.snapshot()
            if (K1 in snapshot) != (K2 in snapshot):
                torn.append(True)

    thread = threading.Thread(target=reader)
    thread.start()
    try:
        for _ in range(200):
            registry.lock({K1, K2}, "o1", "abc")
            registry.remove_all({K1, K2})
    finally:
        stop.set()
        thread.join()

    assert not torn
