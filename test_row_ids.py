"""
Unit tests for the row id sequencer.
"""

import pytest

from api_editor.row_ids import IdSequencer


class TestSeeded:
    """Test cases for IdSequencer.seeded."""

    def test_seeded_with_count(self):
        """Seeding with n rows gives ids 1..n and counter n."""
        seq = IdSequencer.seeded(3)
        assert seq.ids == (1, 2, 3)
        assert seq.counter == 3

    def test_seeded_without_count(self):
        """None and 0 give an empty sequencer."""
        assert IdSequencer.seeded().ids == ()
        assert IdSequencer.seeded(0).counter == 0

    def test_seeded_negative_count(self):
        with pytest.raises(ValueError):
            IdSequencer.seeded(-1)


class TestAllocation:
    """Test cases for push, insert and remove."""

    def test_push_appends_fresh_id(self):
        seq = IdSequencer.seeded(2).push()
        assert seq.ids == (1, 2, 3)
        assert seq.last_allocated == 3

    def test_allocate_returns_id(self):
        seq, new_id = IdSequencer.seeded(1).allocate()
        assert new_id == 2
        assert 2 in seq

    def test_sequencer_is_immutable(self):
        """Mutations return a new sequencer and leave the original alone."""
        original = IdSequencer.seeded(2)
        original.push()
        original.insert_at(0)
        original.remove_and_ensure_non_empty(1)
        assert original.ids == (1, 2)
        assert original.counter == 2

    def test_insert_at_middle(self):
        seq = IdSequencer.seeded(3).insert_at(1)
        assert seq.ids == (1, 4, 2, 3)

    def test_insert_at_out_of_range_appends(self):
        """Negative and too-large indexes append at the end."""
        assert IdSequencer.seeded(2).insert_at(-1).ids == (1, 2, 3)
        assert IdSequencer.seeded(2).insert_at(2).ids == (1, 2, 3)
        assert IdSequencer.seeded(2).insert_at(10).ids == (1, 2, 3)

    def test_insert_after(self):
        seq = IdSequencer.seeded(3).insert_after(1)
        assert seq.ids == (1, 4, 2, 3)

    def test_insert_after_unknown_id_appends(self):
        seq = IdSequencer.seeded(2).insert_after(99)
        assert seq.ids == (1, 2, 3)

    def test_remove_keeps_counter(self):
        seq = IdSequencer.seeded(3).remove_and_ensure_non_empty(2)
        assert seq.ids == (1, 3)
        assert seq.counter == 3

    def test_remove_last_row_allocates_fresh_one(self):
        """Removing the only row leaves one fresh row, never an empty list."""
        seq = IdSequencer.seeded(1).remove_and_ensure_non_empty(1)
        assert seq.ids == (2,)
        assert seq.counter == 2

    def test_remove_unknown_id_is_noop(self):
        seq = IdSequencer.seeded(2).remove_and_ensure_non_empty(42)
        assert seq.ids == (1, 2)

    def test_ids_never_reused(self):
        """Ids stay unique across any sequence of removals and inserts."""
        seq = IdSequencer.seeded(2)
        seen = set(seq.ids)
        for _ in range(5):
            seq = seq.remove_and_ensure_non_empty(seq.ids[0])
            seq = seq.insert_at(0)
            assert seq.last_allocated not in seen
            seen.add(seq.last_allocated)
        assert len(set(seq.ids)) == len(seq.ids)

    def test_index_of(self):
        seq = IdSequencer.seeded(3)
        assert seq.index_of(2) == 1
        assert seq.index_of(7) == -1
