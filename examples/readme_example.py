"""Walkthrough: lock a double chest, share it, break it, and sweep orphans.

Run with: python examples/readme_example.py
"""

import tempfile
from pathlib import Path

from chestguard import (
    BlockState,
    ChestGuard,
    ChestGuardSettings,
    ContainerKey,
    Facing,
    ManualScheduler,
    PairSide,
    Requester,
)
from chestguard.world import LocalWorldProvider


def main() -> None:
    worlds = LocalWorldProvider()
    overworld = worlds.create_world("overworld")

    # A double chest facing north: left half at x=0, right half at x=1
    overworld.set_block(0, 64, 0, BlockState("CHEST", PairSide.LEFT, Facing.NORTH))
    overworld.set_block(1, 64, 0, BlockState("CHEST", PairSide.RIGHT, Facing.NORTH))
    left = ContainerKey("overworld", 0, 64, 0)
    right = ContainerKey("overworld", 1, 64, 0)

    alice = Requester("alice-uuid")
    bob = Requester("bob-uuid")
    scheduler = ManualScheduler()

    with tempfile.TemporaryDirectory() as folder:
        settings = ChestGuardSettings(data_folder=Path(folder), log_level="INFO")
        with ChestGuard(worlds, settings, scheduler) as guard:
            print("lock:", guard.service.lock(alice, left, "s3cret").code)
            print("both halves locked:", guard.protection.is_locked(right))
            print("bob opens:", guard.access.check_access(bob, right).code)

            guard.service.trust(alice, bob.identity)
            print("bob opens as:", guard.access.check_access(bob, right).role)

            guard.service.rename(alice, right, "Loot")
            print("name:", guard.service.display_name(left))

            # The chest disappears without a break event; the sweep notices
            overworld.remove_block(0, 64, 0)
            overworld.remove_block(1, 64, 0)
            report = guard.sweeper.run_manual()
            print(report)
            print("bob still trusted:", guard.trust.is_trusted(alice.identity, bob.identity))

            print("saved to:", Path(folder) / settings.yaml_file_name)


if __name__ == "__main__":
    main()
