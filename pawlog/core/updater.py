"""
PawLog — Update Applier.

Toggles one status field of one record. The change is written to the local
cache first (so the board reflects it immediately), then sent to the
backend. If the backend call fails, only that field is put back to the value
it had before this call.

    APPLIED ──▶ CONFIRMED
       └─────▶ ROLLED_BACK
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from pawlog.data.models import DailyRecord, RecordKind
from pawlog.ports.record_store import RemoteUnavailable

if TYPE_CHECKING:
    from pawlog.ports.record_store import RecordStore

logger = logging.getLogger(__name__)


class NotFoundError(LookupError):
    """Raised when a record id is not in the local cache (stale state)."""


class MutationState(Enum):
    APPLIED = "applied"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"
    LOCAL_ONLY = "local_only"     # placeholder records are never sent


@dataclass
class Mutation:
    """Outcome of a single set_field call."""

    record_id: int
    kind: RecordKind
    field: str
    previous: bool
    value: bool
    state: MutationState = MutationState.APPLIED
    error: str | None = None


class RecordCache(Protocol):
    """What the applier needs from the in-memory board."""

    def records(self, subject_id: int, kind: RecordKind) -> list[DailyRecord]: ...

    def replace(self, subject_id: int, kind: RecordKind, records: list[DailyRecord]) -> None: ...

    def is_placeholder(self, subject_id: int, kind: RecordKind) -> bool: ...


def apply_field(
    records: list[DailyRecord], record_id: int, field: str, value: bool
) -> list[DailyRecord]:
    """Return a copy of records with one field of one record changed.

    Raises NotFoundError if no record has the given id.
    """
    if not any(r.id == record_id for r in records):
        raise NotFoundError(f"Record {record_id} not found")
    return [
        replace(r, **{field: value}) if r.id == record_id else r
        for r in records
    ]


class UpdateApplier:
    """Optimistic single-field updates with rollback on remote failure."""

    def __init__(self, store: RecordStore, cache: RecordCache) -> None:
        self._store = store
        self._cache = cache

    async def set_field(
        self,
        subject_id: int,
        record_id: int,
        kind: RecordKind,
        field: str,
        value: bool,
    ) -> Mutation:
        if field not in kind.status_fields:
            raise ValueError(f"{field!r} is not a {kind.value} status field")

        current = self._cache.records(subject_id, kind)
        record = next((r for r in current if r.id == record_id), None)
        if record is None:
            raise NotFoundError(f"{kind.value.capitalize()} {record_id} not found")

        mutation = Mutation(
            record_id=record_id,
            kind=kind,
            field=field,
            previous=getattr(record, field),
            value=value,
        )
        self._cache.replace(subject_id, kind, apply_field(current, record_id, field, value))

        if self._cache.is_placeholder(subject_id, kind):
            logger.warning(
                "%s %d updated locally only (backend unavailable at load)",
                kind.value, record_id,
            )
            mutation.state = MutationState.LOCAL_ONLY
            return mutation

        try:
            await self._store.update(
                kind.table,
                match={"id": record_id, "dog_id": subject_id},
                values={field: value},
            )
        except RemoteUnavailable as exc:
            logger.error("Error updating %s %d: %s", kind.value, record_id, exc)
            # Re-read: other fields may have changed while the call was in flight
            latest = self._cache.records(subject_id, kind)
            try:
                self._cache.replace(
                    subject_id, kind,
                    apply_field(latest, record_id, field, mutation.previous),
                )
            except NotFoundError:
                logger.info("%s %d left the board before rollback", kind.value, record_id)
            mutation.state = MutationState.ROLLED_BACK
            mutation.error = f"Error updating {kind.value} record"
            return mutation

        mutation.state = MutationState.CONFIRMED
        logger.info(
            "%s %d: %s set to %s", kind.value, record_id, field, value,
        )
        return mutation
