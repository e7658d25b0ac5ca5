"""
Id-addressed views of one location's task list.

LocationSnapshot is the immutable input every planner reads. TaskWorkset is
the scratch copy a planner edits; the snapshot itself never changes, so a
planner that gives up halfway leaves nothing behind.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional, Union

from site_scheduler.models.task import Task


def _sort_key(task: Task) -> tuple:
    return (task.order, task.id)


def _index_groups(ids: Iterable[int], tasks: Mapping[int, Task]) -> dict[str, list[int]]:
    groups: dict[str, list[int]] = {}
    for task_id in ids:
        group = tasks[task_id].linked_task_group
        if group:
            groups.setdefault(group, []).append(task_id)
    return groups


class LocationSnapshot:
    """Read-only, totally ordered view of a location's tasks."""

    def __init__(self, tasks: Iterable[Task]):
        ordered = sorted(tasks, key=_sort_key)
        self._ids: tuple[int, ...] = tuple(t.id for t in ordered)
        self._tasks: Mapping[int, Task] = MappingProxyType({t.id: t for t in ordered})
        self._positions = {task_id: i for i, task_id in enumerate(self._ids)}
        self._groups: Mapping[str, tuple[int, ...]] = MappingProxyType(
            {g: tuple(members) for g, members in _index_groups(self._ids, self._tasks).items()}
        )

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[Task]:
        return (self._tasks[task_id] for task_id in self._ids)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    @property
    def ids(self) -> tuple[int, ...]:
        return self._ids

    @property
    def groups(self) -> Mapping[str, tuple[int, ...]]:
        return self._groups

    def get(self, task_id: int) -> Optional[Task]:
        return self._tasks.get(task_id)

    def index_of(self, task_id: int) -> int:
        return self._positions[task_id]

    def ordered(self) -> list[Task]:
        return list(self)

    def group_members(self, group_id: Optional[str]) -> tuple[int, ...]:
        if not group_id:
            return ()
        return self._groups.get(group_id, ())

    def last_complete_index(self) -> int:
        """Position of the most recently completed task, scanning from the end (-1 if none)."""
        for index in range(len(self._ids) - 1, -1, -1):
            if self._tasks[self._ids[index]].is_complete:
                return index
        return -1

    def workset(self) -> TaskWorkset:
        return TaskWorkset(self)


class TaskWorkset:
    """Mutable scratch copy of a snapshot used while a plan is being built."""

    def __init__(self, snapshot: LocationSnapshot):
        self._ids: list[int] = list(snapshot.ids)
        self._tasks: dict[int, Task] = {t.id: t for t in snapshot}
        self._groups: dict[str, list[int]] = {g: list(m) for g, m in snapshot.groups.items()}

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    @property
    def ids(self) -> list[int]:
        return list(self._ids)

    def get(self, task_id: int) -> Task:
        return self._tasks[task_id]

    def index_of(self, task_id: int) -> int:
        return self._ids.index(task_id)

    def at(self, index: int) -> Task:
        return self._tasks[self._ids[index]]

    def ordered(self) -> list[Task]:
        return [self._tasks[task_id] for task_id in self._ids]

    # ---- group index ----

    def group_ids(self) -> list[str]:
        return list(self._groups)

    def group_members(self, group_id: Optional[str]) -> list[int]:
        """Members of a linked group in list order."""
        if not group_id or group_id not in self._groups:
            return []
        members = set(self._groups[group_id])
        return [task_id for task_id in self._ids if task_id in members]

    def _unindex(self, task: Task) -> None:
        group = task.linked_task_group
        if group and group in self._groups:
            self._groups[group].remove(task.id)
            if not self._groups[group]:
                del self._groups[group]

    def _index(self, task: Task) -> None:
        if task.linked_task_group:
            self._groups.setdefault(task.linked_task_group, []).append(task.id)

    # ---- edits ----

    def update(self, task_id: int, **changes) -> Task:
        """Replace a task with a copy carrying the given field changes."""
        current = self._tasks[task_id]
        updated = current.model_copy(update=changes)
        if updated.linked_task_group != current.linked_task_group:
            self._unindex(current)
            self._index(updated)
        self._tasks[task_id] = updated
        return updated

    def insert(self, index: int, task: Task) -> None:
        self._ids.insert(index, task.id)
        self._tasks[task.id] = task
        self._index(task)

    def remove(self, task_id: int) -> Task:
        task = self._tasks.pop(task_id)
        self._ids.remove(task_id)
        self._unindex(task)
        return task

    def reorder(self, ids: list[int]) -> None:
        """Replace the list order; the set of ids must not change."""
        if sorted(ids) != sorted(self._ids):
            raise ValueError("reorder must be a permutation of the current ids")
        self._ids = list(ids)

    def replace_all(self, tasks: Iterable[Task]) -> None:
        """Adopt recomputed versions of existing tasks (e.g. realigned dates)."""
        for task in tasks:
            current = self._tasks[task.id]
            if task is not current:
                if task.linked_task_group != current.linked_task_group:
                    self._unindex(current)
                    self._index(task)
                self._tasks[task.id] = task


TaskSource = Union[LocationSnapshot, Iterable[Task]]


def as_snapshot(tasks: TaskSource) -> LocationSnapshot:
    """Accept either a prepared snapshot or a plain list of tasks."""
    return tasks if isinstance(tasks, LocationSnapshot) else LocationSnapshot(tasks)
