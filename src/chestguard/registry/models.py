"""Protection record models."""

from __future__ import annotations

from dataclasses import dataclass

from chestguard.core.secrets import is_legacy_plaintext


@dataclass(frozen=True, slots=True)
class ContainerRecord:
    """Protection data stored for one ContainerKey.

    Attributes:
        owner_id: Durable identity of the player who locked the container.
        secret_record: Hashed ``salt:digest`` record, or a legacy plaintext secret.
        display_name: Optional validated custom name.
    """

    owner_id: str
    secret_record: str
    display_name: str | None = None

    @property
    def is_legacy(self) -> bool:
        """True if the secret is still stored as plaintext."""
        return is_legacy_plaintext(self.secret_record)
