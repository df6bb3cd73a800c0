import unittest

import pytest

from conftest import make_channel, make_file
from curve_viewer.models.groups import ChannelRef, GroupCollection
from curve_viewer.models.session import FileCollection, SyncMode, SyncState


class TestGroupCollection(unittest.TestCase):
    def setUp(self):
        self.groups = GroupCollection()
        self.g1 = self.groups.create("First", [ChannelRef("f1", "a")], group_id="g1")
        self.g2 = self.groups.create("Second", group_id="g2")

    def test_create_and_rename(self):
        gid = self.groups.create("Auto")
        self.assertEqual(len(gid), 36)
        self.assertTrue(self.groups.get(gid).is_active)
        self.groups.rename("g1", "Renamed")
        self.assertEqual(self.groups.get("g1").name, "Renamed")

    def test_add_channels_deduplicates(self):
        self.groups.add_channels("g1", [ChannelRef("f1", "a"), ChannelRef("f2", "b")])
        self.assertEqual(self.groups.get("g1").channels, [ChannelRef("f1", "a"), ChannelRef("f2", "b")])

    def test_remove_channel_and_file(self):
        self.groups.add_channels("g1", [ChannelRef("f1", "b"), ChannelRef("f2", "c")])
        self.groups.remove_channel("g1", "f1", "a")
        self.assertFalse(self.groups.get("g1").contains("f1", "a"))
        self.groups.remove_file("g1", "f1")
        self.assertEqual(self.groups.get("g1").channels, [ChannelRef("f2", "c")])

    def test_move_channel(self):
        ref = ChannelRef("f1", "a")
        self.groups.move_channel("g1", "g2", ref)
        self.assertEqual(self.groups.get("g1").channels, [])
        self.assertEqual(self.groups.get("g2").channels, [ref])

    def test_reorder_keeps_only_listed(self):
        self.groups.reorder(["g2", "missing"])
        self.assertEqual([g.id for g in self.groups], ["g2"])

    def test_active_flags(self):
        self.groups.toggle_active("g1")
        self.assertEqual([g.id for g in self.groups.active_groups()], ["g2"])
        self.groups.set_active("g1", True)
        self.assertEqual(len(self.groups.active_groups()), 2)

    def test_unknown_ids_are_ignored(self):
        self.groups.rename("nope", "x")
        self.groups.toggle_active("nope")
        self.groups.remove("nope")
        self.assertEqual(len(self.groups), 2)
        self.assertIsNone(self.groups.get("nope"))


class TestFileCollection:
    def test_add_deduplicates_by_id(self):
        f1 = make_file("f1", [make_channel("a", "f1")])
        f2 = make_file("f2", [make_channel("b", "f2"), make_channel("c", "f2")])
        fc = FileCollection()
        assert fc.add([f1, f2]) == 2
        assert fc.add([f1]) == 0
        assert len(fc) == 2
        assert [ch.id for ch in fc.all_channels()] == ["a", "b", "c"]
        assert fc.get_channel("f2", "c").id == "c"
        assert fc.get_channel("f9", "c") is None
        fc.remove("f1")
        assert fc.get_file("f1") is None
        fc.clear()
        assert len(fc) == 0


class TestSyncState:
    def test_apply_replaces_and_reset_clears(self):
        st = SyncState(mode=SyncMode.XMIN, master_y_axis="Force")
        st.apply({"a": -1.0, "b": 2.0}, ["b: oops"])
        st.apply({"a": -3.0})
        assert st.offsets == {"a": -3.0}
        assert st.errors == []
        assert st.is_active
        st.reset()
        assert st.mode is SyncMode.OFF
        assert not st.is_active
        assert st.offset_for("a") == 0.0

    def test_parse_mode(self):
        assert SyncMode.parse(" YThreshold ") is SyncMode.YTHRESHOLD
        with pytest.raises(ValueError):
            SyncMode.parse("middle")
