"""
Deletion planning.

Removing a task may leave a lone linked partner behind and may pull
downstream dependent tasks earlier. Order keys of surviving tasks are never
touched; gaps in the key space are fine.
"""

from site_scheduler.core.logger import setup_logger
from site_scheduler.models.enums import PlanFailureCode
from site_scheduler.models.planning import PlanFailure, PlanOutcome
from site_scheduler.services.linked_groups import unlink
from site_scheduler.services.task_snapshot import TaskSource, as_snapshot
from site_scheduler.services.task_utils import build_delta, finalize

logger = setup_logger(__name__)


def plan_deletion(tasks: TaskSource, task_id: int) -> PlanOutcome:
    """
    Plan the removal of a task.

    Args:
        tasks: Current tasks of the location
        task_id: Task to delete

    Returns:
        ScheduleDelta with deleted_task_id set and the surviving tasks whose
        date, dependency flag or group changed, or PlanFailure if the task
        does not exist
    """
    snapshot = as_snapshot(tasks)
    if task_id not in snapshot:
        return PlanFailure(
            code=PlanFailureCode.TASK_NOT_FOUND,
            message=f"Task {task_id} not found",
            details={"task_id": task_id},
        )

    workset = snapshot.workset()
    if snapshot.get(task_id).linked_task_group:
        unlink(workset, task_id)
    workset.remove(task_id)
    finalize(workset)

    delta = build_delta(snapshot, workset, deleted_task_id=task_id)
    logger.debug("Deletion of %s touches %d task(s)", task_id, len(delta.updated_tasks))
    return delta
