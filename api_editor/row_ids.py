"""
Row identity allocation for dynamically added editor rows.

An IdSequencer is an immutable value: every mutation returns a new sequencer
and the editor that owns it keeps the current one. Ids are allocated from a
counter that only ever moves forward, so an id is never handed out twice
within one sequencer lineage, no matter how many rows were removed.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdSequencer:
    """
    Ordered set of live row ids plus the allocation counter.

    Attributes:
        ids: Live ids in display order
        counter: Last id allocated; the next allocation returns counter + 1
    """

    ids: Tuple[int, ...] = field(default_factory=tuple)
    counter: int = 0

    @classmethod
    def seeded(cls, count: Optional[int] = None) -> "IdSequencer":
        """
        Create a sequencer holding ids 1..count.

        Args:
            count: Number of initial rows; None or 0 gives an empty sequencer

        Returns:
            New sequencer whose counter equals count
        """
        count = count or 0
        if count < 0:
            raise ValueError(f"Initial row count cannot be negative: {count}")
        return cls(ids=tuple(range(1, count + 1)), counter=count)

    def __len__(self) -> int:
        return len(self.ids)

    def __iter__(self) -> Iterator[int]:
        return iter(self.ids)

    def __contains__(self, row_id: object) -> bool:
        return row_id in self.ids

    @property
    def last_allocated(self) -> int:
        """Most recently allocated id (0 before any allocation)."""
        return self.counter

    def index_of(self, row_id: int) -> int:
        """Return the position of row_id, or -1 if it is not live."""
        try:
            return self.ids.index(row_id)
        except ValueError:
            return -1

    def allocate(self) -> Tuple["IdSequencer", int]:
        """
        Allocate a fresh id and append it.

        Returns:
            Tuple of (new sequencer, allocated id)
        """
        new_id = self.counter + 1
        return IdSequencer(ids=self.ids + (new_id,), counter=new_id), new_id

    def push(self) -> "IdSequencer":
        """Append a freshly allocated id."""
        sequencer, _ = self.allocate()
        return sequencer

    def remove_and_ensure_non_empty(self, row_id: int) -> "IdSequencer":
        """
        Remove row_id; if nothing is left, allocate one fresh id.

        Removing an id that is not live leaves the ids unchanged.
        """
        remaining = tuple(current for current in self.ids if current != row_id)
        if remaining:
            return IdSequencer(ids=remaining, counter=self.counter)

        new_id = self.counter + 1
        logger.debug(f"Last row {row_id} removed, replaced with fresh row {new_id}")
        return IdSequencer(ids=(new_id,), counter=new_id)

    def insert_at(self, index: int) -> "IdSequencer":
        """
        Insert a freshly allocated id at index.

        An index outside 0..len-1 appends at the end.
        """
        if index < 0 or index >= len(self.ids):
            return self.push()
        new_id = self.counter + 1
        ids = self.ids[:index] + (new_id,) + self.ids[index:]
        return IdSequencer(ids=ids, counter=new_id)

    def insert_after(self, row_id: int) -> "IdSequencer":
        """
        Insert a freshly allocated id right after row_id.

        An unknown row_id appends at the end.
        """
        index = self.index_of(row_id)
        if index == -1:
            return self.push()
        new_id = self.counter + 1
        ids = self.ids[:index + 1] + (new_id,) + self.ids[index + 1:]
        return IdSequencer(ids=ids, counter=new_id)
