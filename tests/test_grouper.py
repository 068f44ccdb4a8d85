"""
Tests for RecordGrouperImpl and DuplicateGroup ordering.
A group is only processed when both digests agree across all members.
"""
from symdedup.core.grouper import RecordGrouperImpl
from symdedup.core.models import DuplicateGroup


class TestRecordGrouperImpl:
    """Test strong-digest grouping and fast-digest collision checks."""

    def test_groups_by_strong_digest(self, make_record):
        records = [
            make_record("/a", digest_b="x"),
            make_record("/b", digest_b="y"),
            make_record("/c", digest_b="x"),
        ]
        groups = RecordGrouperImpl().group_by_strong_digest(records)

        assert {k: [r.path for r in v] for k, v in groups.items()} == {"x": ["/a", "/c"], "y": ["/b"]}

    def test_singletons_are_not_duplicates(self, make_record):
        grouper = RecordGrouperImpl()
        assert not grouper.is_ready_for_processing([make_record("/a")])
        assert grouper.find_duplicate_groups([make_record("/a", digest_b="1"), make_record("/b", digest_b="2")]) == []

    def test_collision_is_excluded_and_warned(self, make_record, caplog):
        """Same strong digest with different fast digests must never be processed."""
        records = [
            make_record("/x/one.bin", digest_a="f1", digest_b="s"),
            make_record("/x/two.bin", digest_a="f2", digest_b="s"),
        ]
        collided = []

        groups = RecordGrouperImpl().find_duplicate_groups(records, on_collision=collided.append)

        assert groups == []
        assert collided == [records]
        assert "Hash collision detected for: one.bin, two.bin" in caplog.text

    def test_collision_warning_can_be_suppressed(self, make_record, caplog):
        records = [make_record("/a", digest_a="1"), make_record("/b", digest_a="2")]

        assert not RecordGrouperImpl().is_ready_for_processing(records, warn=False)
        assert "Hash collision" not in caplog.text

    def test_redundant_bytes_excludes_prominent(self, make_record):
        """Sizes [10, 10, 5] with the 10-byte file prominent leave 15 redundant bytes."""
        group = DuplicateGroup("d", [
            make_record("/p", size=10, last_modified=300),
            make_record("/q", size=10, last_modified=200),
            make_record("/r", size=5, last_modified=100),
        ])
        assert RecordGrouperImpl.redundant_bytes([group]) == 15


class TestDuplicateGroup:
    """Test prominence: the most recently modified member comes first."""

    def test_most_recent_is_prominent(self, make_record):
        group = DuplicateGroup("d", [
            make_record("/old", last_modified=1),
            make_record("/new", last_modified=3),
            make_record("/mid", last_modified=2),
        ])
        assert group.prominent.path == "/new"
        assert [r.path for r in group.redundant] == ["/mid", "/old"]

    def test_ties_keep_input_order(self, make_record):
        group = DuplicateGroup("d", [make_record("/first", last_modified=5), make_record("/second", last_modified=5)])
        assert group.prominent.path == "/first"

    def test_is_duplicate(self, make_record):
        assert DuplicateGroup("d", [make_record("/a"), make_record("/b")]).is_duplicate()
        assert not DuplicateGroup("d", [make_record("/a")]).is_duplicate()
