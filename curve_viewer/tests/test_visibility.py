import pytest

from conftest import make_channel, make_file
from curve_viewer.analysis.visibility import (
    ChannelVisibility,
    GlobalVisibility,
    TriState,
    VisibilityKey,
    VisibilityMap,
    element_key,
    expand_instances,
    instances_in_file,
    instances_in_group,
    instances_with_description,
    resolve_visible_channels,
    toggle_instances,
    tri_state,
)
from curve_viewer.models.groups import UNGROUPED, ChannelGroup, ChannelRef


@pytest.fixture
def session():
    f1 = make_file("f1", [make_channel("a", "f1"), make_channel("b", "f1", x_name="Time", y_name="Torque")])
    f2 = make_file("f2", [make_channel("c", "f2")])
    g1 = ChannelGroup("g1", "Forces", [ChannelRef("f1", "a"), ChannelRef("f2", "c"), ChannelRef("gone", "z")])
    g2 = ChannelGroup("g2", "Inactive", [ChannelRef("f1", "b")], is_active=False)
    return [f1, f2], [g1, g2]


class TestVisibilityMap:
    def test_default_visible_and_sparse(self):
        vm = VisibilityMap()
        key = ("g", "f", "c")
        assert vm.is_visible(key)
        assert len(vm) == 0
        vm.set_channel_visible(key, False)
        assert not vm.is_visible(key)
        assert key in vm

    def test_entries_are_replaced_not_mutated(self):
        vm = VisibilityMap()
        key = VisibilityKey("g", "f", "c")
        vm.set_channel_visible(key, True)
        before = vm.get(key)
        vm.set_element_visible(key, "windows", False)
        after = vm.get(key)
        assert before is not after
        assert before.elements.windows is True
        assert after.element_visible("windows") is False
        assert after.element_visible("lines") is True

    def test_element_group_drill_down(self):
        vm = VisibilityMap()
        key = ("g", "f", "c")
        vm.set_element_group_visible(key, element_key("lines", 0), False)
        vm.set_element_group_visible(key, element_key("lines", 1, 2), False)
        vm.set_element_group_visible(key, "lines-0", True)
        assert vm.get(key).hidden_element_groups == frozenset({"lines-1-2"})

    def test_init_entries_only_creates_missing(self):
        vm = VisibilityMap([ChannelVisibility(VisibilityKey("g", "f", "a"), visible=False)])
        assert vm.init_entries([("g", "f", "a"), ("g", "f", "b")]) == 1
        assert not vm.is_visible(("g", "f", "a"))

    def test_unknown_element_kind(self):
        with pytest.raises(ValueError):
            VisibilityMap().set_element_visible(("g", "f", "c"), "arrows", False)
        with pytest.raises(ValueError):
            element_key("arrows", 0)


class TestResolution:
    def test_active_groups_then_ungrouped(self, session):
        files, groups = session
        inst = expand_instances(files, groups, [("f1", "a"), ("f1", "b")])
        assert [(i.group_id, i.channel.id) for i in inst] == [("g1", "a"), ("g1", "c"), (UNGROUPED, "b")]

    def test_same_channel_in_two_groups_gives_two_instances(self, session):
        files, (g1, _) = session
        g3 = ChannelGroup("g3", "Again", [ChannelRef("f1", "a")])
        inst = expand_instances(files, [g1, g3])
        assert [i.key for i in inst if i.channel.id == "a"] == [("g1", "f1", "a"), ("g3", "f1", "a")]

    def test_x_axis_and_visibility_filter(self, session):
        files, groups = session
        vm = VisibilityMap()
        vm.set_channel_visible(("g1", "f2", "c"), False)
        out = resolve_visible_channels(files, groups, [("f1", "b")], vm, x_axis="Distance")
        assert [i.key for i in out] == [("g1", "f1", "a")]

    def test_selection_helpers(self, session):
        files, groups = session
        inst = expand_instances(files, groups, [ChannelRef("f1", "b")])
        assert len(instances_in_group(inst, "g1")) == 2
        assert len(instances_in_file(inst, "f1")) == 2
        assert len(instances_in_file(inst, "f1", group_id="g1")) == 1
        assert [i.channel.id for i in instances_with_description(inst, "Torque")] == ["b"]


class TestToggles:
    def test_tri_state_and_toggle(self, session):
        files, groups = session
        inst = expand_instances(files, groups)
        vm = VisibilityMap()
        assert tri_state(inst, vm) is TriState.ALL
        vm.set_channel_visible(inst[0].key, False)
        assert tri_state(inst, vm) is TriState.MIXED
        assert toggle_instances(inst, vm) is True
        assert tri_state(inst, vm) is TriState.ALL
        assert toggle_instances(inst, vm) is False
        assert tri_state(inst, vm) is TriState.NONE

    def test_group_toggle_leaves_same_channel_in_other_group(self, session):
        files, (g1, _) = session
        g3 = ChannelGroup("g3", "Again", [ChannelRef("f1", "a")])
        inst = expand_instances(files, [g1, g3])
        vm = VisibilityMap()

        assert toggle_instances(instances_in_group(inst, "g1"), vm) is False
        assert not vm.is_visible(("g1", "f1", "a"))
        assert not vm.is_visible(("g1", "f2", "c"))
        assert vm.get(("g3", "f1", "a")) is None
        assert vm.is_visible(("g3", "f1", "a"))
        assert tri_state(instances_in_group(inst, "g3"), vm) is TriState.ALL

    def test_empty_is_all(self):
        assert tri_state([], VisibilityMap()) is TriState.ALL


def test_global_toggle_all_elements():
    gv = GlobalVisibility()
    gv.toggle_all_elements()
    assert not any((gv.all_elements, gv.lines, gv.windows, gv.circles))
    assert not gv.kind_enabled("lines")
    gv.toggle_all_elements()
    assert gv.kind_enabled("circles")
