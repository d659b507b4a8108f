"""Value types exchanged between the sync engine and the inventory client."""

from __future__ import annotations

from dataclasses import asdict, dataclass

from variant_sync.sku import UNKNOWN_GROUP


@dataclass(frozen=True)
class VariantRecord:
    """One variant as returned by catalog search."""

    variant_id: str
    sku: str
    inventory_item_id: str


@dataclass(frozen=True)
class InventoryLevel:
    """Available quantity of one inventory item at its location."""

    quantity: int
    location_id: str


@dataclass(frozen=True)
class VariantPage:
    """One page of a paginated variant search."""

    records: tuple[VariantRecord, ...]
    has_next_page: bool = False
    next_cursor: str | None = None


@dataclass(frozen=True)
class WriteOutcome:
    """Result of an unconditional quantity write."""

    success: bool
    reason: str = ""

    @classmethod
    def ok(cls) -> WriteOutcome:
        return cls(success=True)

    @classmethod
    def failed(cls, reason: str) -> WriteOutcome:
        return cls(success=False, reason=reason)


@dataclass(frozen=True)
class Candidate:
    """A (sku, inventory item) pair that may trigger a group sync.

    ``inventory_item_id`` is absent when the inbound event did not carry
    it; ``variant_id`` is then used to resolve it.
    """

    sku: str
    inventory_item_id: str | None = None
    variant_id: str | None = None


@dataclass(frozen=True)
class SyncResult:
    """Outcome of synchronizing one SKU group."""

    group_key: str
    source_sku: str
    quantity: int = 0
    siblings_found: int = 0
    siblings_updated: int = 0
    errors: tuple[str, ...] = ()
    # Set only on the placeholder result of a SKU without a group key
    invalid_sku: bool = False

    @classmethod
    def for_invalid_sku(cls, sku: str) -> SyncResult:
        return cls(
            group_key=UNKNOWN_GROUP,
            source_sku=sku,
            errors=(f'Invalid SKU format: "{sku}"',),
            invalid_sku=True,
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["errors"] = list(self.errors)
        return data


@dataclass(frozen=True)
class BatchResult:
    """All group results produced by one inbound event, in processing order."""

    results: tuple[SyncResult, ...] = ()

    @property
    def status(self) -> str:
        return "partial" if any(r.errors for r in self.results) else "ok"

    @property
    def total_updated(self) -> int:
        return sum(r.siblings_updated for r in self.results)

    def __iter__(self):
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "results": [r.to_dict() for r in self.results],
        }
