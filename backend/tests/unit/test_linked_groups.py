"""
Unit tests for linked group management.
"""

from datetime import date

from site_scheduler.services.linked_groups import (
    expand_selection,
    expand_selections,
    link,
    new_group_id,
    unlink,
)
from site_scheduler.services.task_snapshot import LocationSnapshot

MON = date(2024, 3, 4)
TUE = date(2024, 3, 5)
WED = date(2024, 3, 6)


def _snapshot(make_task):
    return LocationSnapshot(
        [
            make_task(1, MON, dependent=False),
            make_task(2, TUE, group="g1"),
            make_task(3, TUE, group="g1", dependent=False),
            make_task(4, WED),
        ]
    )


def test_new_group_id_is_unique():
    assert new_group_id() != new_group_id()
    assert new_group_id().startswith("group_")


class TestExpandSelection:
    def test_grouped_task_expands_to_whole_group(self, make_task):
        snapshot = _snapshot(make_task)
        assert expand_selection(snapshot, 3) == [2, 3]

    def test_ungrouped_task_is_alone(self, make_task):
        assert expand_selection(_snapshot(make_task), 4) == [4]

    def test_missing_task_expands_to_nothing(self, make_task):
        assert expand_selection(_snapshot(make_task), 99) == []

    def test_several_selections_are_deduplicated_in_list_order(self, make_task):
        assert expand_selections(_snapshot(make_task), [4, 2, 3]) == [2, 3, 4]


class TestLink:
    def test_mints_group_and_syncs_dates(self, make_task):
        workset = _snapshot(make_task).workset()

        group_id = link(workset, [1, 4], WED, id_factory=lambda: "fresh")

        assert group_id == "fresh"
        assert workset.get(1).linked_task_group == "fresh"
        assert workset.get(4).linked_task_group == "fresh"
        assert workset.get(1).task_date == WED
        assert workset.group_members("fresh") == [1, 4]

    def test_leaves_dependency_flags_alone(self, make_task):
        workset = _snapshot(make_task).workset()

        link(workset, [1, 4], MON, id_factory=lambda: "fresh")

        assert workset.get(1).dependent_on_previous is False
        assert workset.get(4).dependent_on_previous is True

    def test_reuses_existing_group_for_partial_selection(self, make_task):
        workset = _snapshot(make_task).workset()

        group_id = link(workset, [3, 4], MON, id_factory=lambda: "unused")

        assert group_id == "g1"
        assert workset.group_members("g1") == [2, 3, 4]
        assert {workset.get(t).task_date for t in (2, 3, 4)} == {MON}

    def test_merges_groups(self, make_task):
        snapshot = LocationSnapshot(
            [
                make_task(1, MON, dependent=False, group="a"),
                make_task(2, MON, group="a"),
                make_task(3, TUE, group="b"),
                make_task(4, TUE, group="b"),
            ]
        )
        workset = snapshot.workset()

        group_id = link(workset, [4, 1], MON)

        assert group_id == "a"
        assert workset.group_ids() == ["a"]
        assert workset.group_members("a") == [1, 2, 3, 4]


class TestUnlink:
    def test_pair_is_fully_dissolved(self, make_task):
        workset = _snapshot(make_task).workset()

        released = unlink(workset, 2)

        assert released == [2, 3]
        assert workset.get(2).linked_task_group is None
        assert workset.get(3).linked_task_group is None
        assert workset.group_ids() == []
        # Neither is first overall, so both follow their predecessor.
        assert workset.get(3).dependent_on_previous is True

    def test_larger_group_keeps_other_members(self, make_task):
        snapshot = LocationSnapshot(
            [
                make_task(1, MON, dependent=False, group="g"),
                make_task(2, MON, group="g"),
                make_task(3, MON, group="g", dependent=False),
            ]
        )
        workset = snapshot.workset()

        released = unlink(workset, 1)

        assert released == [1]
        assert workset.group_members("g") == [2, 3]
        assert workset.get(1).dependent_on_previous is False
        assert workset.get(3).dependent_on_previous is False

    def test_ungrouped_task_is_noop(self, make_task):
        workset = _snapshot(make_task).workset()
        assert unlink(workset, 4) == []
