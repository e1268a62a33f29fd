"""Run-scoped store of edit violations.

Every stage appends to the store while the scheduler runs; the report reads
it afterwards. The two phases never overlap: ``seal()`` closes the write
phase and ``snapshot()`` refuses to hand out a view before that, so no
locking is needed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from hmda_edits.core.enums import Scope, Stage
from hmda_edits.core.errors import ErrorStoreError, ScopeMismatchError
from .models import EditBucket, Violation

logger = logging.getLogger(__name__)


class _Bucket:
    __slots__ = ("edit_id", "scope", "fields", "errors")

    def __init__(self, edit_id: str, scope: Scope, fields: Optional[Tuple[str, ...]]) -> None:
        self.edit_id = edit_id
        self.scope = scope
        self.fields = fields
        self.errors: List[Violation] = []

    def freeze(self) -> EditBucket:
        return EditBucket(
            edit_id=self.edit_id,
            scope=self.scope,
            errors=tuple(self.errors),
            fields=self.fields,
        )


@dataclass(frozen=True)
class StoreSnapshot:
    """Immutable, group-partitioned view of a sealed store."""

    groups: Mapping[str, Tuple[EditBucket, ...]]

    def get(self, group: Union[str, Stage]) -> Tuple[EditBucket, ...]:
        return self.groups.get(_group_name(group), ())

    def __iter__(self) -> Iterator[str]:
        return iter(self.groups)

    def edit_ids(self, group: Union[str, Stage, None] = None) -> List[str]:
        names = [_group_name(group)] if group is not None else list(self.groups)
        return [bucket.edit_id for name in names for bucket in self.groups.get(name, ())]

    def violation_count(self, group: Union[str, Stage, None] = None) -> int:
        names = [_group_name(group)] if group is not None else list(self.groups)
        return sum(len(bucket.errors) for name in names for bucket in self.groups.get(name, ()))


class ErrorStore:
    """Keyed collection of violations for one validation run.

    Buckets are keyed by edit id inside a group named after the stage that
    produced them. Group and bucket order is insertion order.

    Examples:
        >>> store = ErrorStore()
        >>> store.record(Stage.SYNTACTICAL, Violation("S040", Scope.DETAIL, 3, "L1", {}))
        >>> store.seal()
        >>> store.snapshot().edit_ids()
        ['S040']
    """

    def __init__(self) -> None:
        self._groups: Dict[str, Dict[str, _Bucket]] = {}
        self._owners: Dict[str, str] = {}
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def record(
        self,
        group: Union[str, Stage],
        violation: Violation,
        fields: Optional[Sequence[str]] = None,
    ) -> None:
        """Append a violation to its edit's bucket.

        The first append for an edit creates the bucket and fixes its scope
        and optional field layout.

        Raises:
            ErrorStoreError: If the store is sealed or the edit id already
                belongs to another group.
            ScopeMismatchError: If the bucket exists with a different scope.
        """
        if self._sealed:
            raise ErrorStoreError(
                f"Cannot record {violation.edit_id}: the store is sealed for reading"
            )
        name = _group_name(group)
        owner = self._owners.get(violation.edit_id)
        if owner is not None and owner != name:
            raise ErrorStoreError(
                f"Edit {violation.edit_id} is already recorded under '{owner}', not '{name}'"
            )

        buckets = self._groups.setdefault(name, {})
        bucket = buckets.get(violation.edit_id)
        if bucket is None:
            bucket = _Bucket(
                violation.edit_id,
                violation.scope,
                tuple(fields) if fields is not None else None,
            )
            buckets[violation.edit_id] = bucket
            self._owners[violation.edit_id] = name
        elif bucket.scope != violation.scope:
            raise ScopeMismatchError(
                f"Edit {violation.edit_id} was created with scope '{bucket.scope.value}' "
                f"but got a violation with scope '{violation.scope.value}'"
            )
        bucket.errors.append(violation)

    def seal(self) -> None:
        """End the write phase. Idempotent."""
        if not self._sealed:
            logger.debug("Error store sealed with %d violations", len(self))
        self._sealed = True

    def reset(self) -> None:
        """Drop every bucket and reopen the store for a new run."""
        self._groups.clear()
        self._owners.clear()
        self._sealed = False

    def snapshot(self) -> StoreSnapshot:
        """Immutable view for the report.

        Raises:
            ErrorStoreError: If called before the store was sealed.
        """
        if not self._sealed:
            raise ErrorStoreError("The store is still being written; finish the run first")
        groups = {
            name: tuple(bucket.freeze() for bucket in buckets.values())
            for name, buckets in self._groups.items()
        }
        return StoreSnapshot(groups=MappingProxyType(groups))

    def __len__(self) -> int:
        return sum(len(b.errors) for buckets in self._groups.values() for b in buckets.values())


def _group_name(group: Union[str, Stage]) -> str:
    return group.value if isinstance(group, Stage) else str(group)


__all__ = ["ErrorStore", "StoreSnapshot"]
