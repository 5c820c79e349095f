import logging

from taskflow.exceptions import Unauthorized
from taskflow.models.comment import Comment
from taskflow.models.enums import TaskStatus, Priority, IN_PROGRESS_STATUSES
from taskflow.models.tasks import Task
from taskflow.models.user import User
from taskflow.schemas.task import TaskCreate, TaskUpdate
from taskflow.services import rules
from taskflow.services.access import (
    Operation,
    load_actor,
    owner_project,
    find_project_with_access,
    find_task_with_access,
    is_project_accessible,
    accessible_project_ids,
)
from taskflow.services.lifecycle import check_transition
from taskflow.storage import Storage
from taskflow.utils.clock import utcnow, as_utc

logger = logging.getLogger(__name__)


async def _active_assignee(store: Storage, assignee_id: int) -> User:
    assignee = await store.get(User, assignee_id)
    rules.ensure_user_active(assignee, "Cannot assign task to inactive user")
    return assignee


async def create_task(store: Storage, task_data: TaskCreate, project_id: int, actor_id: int) -> Task:
    logger.info("Creating new task '%s' in project ID: %s by user ID: %s",
                task_data.title, project_id, actor_id)

    async with store.transaction():
        actor = await load_actor(store, actor_id)
        project = await find_project_with_access(store, project_id, actor)
        rules.ensure_project_active(project, "create task")
        task_data = rules.validate_payload(TaskCreate, task_data)
        rules.ensure_due_date_not_past(task_data.due_date)

        assignee_id = None
        if task_data.assignee_id is not None:
            assignee_id = (await _active_assignee(store, task_data.assignee_id)).id

        task = await store.save(Task(
            title=task_data.title,
            description=task_data.description,
            status=TaskStatus.TODO,
            priority=task_data.priority,
            project_id=project.id,
            assignee_id=assignee_id,
            due_date=as_utc(task_data.due_date),
            estimated_hours=task_data.estimated_hours,
            actual_hours=task_data.actual_hours,
        ))

    logger.info("Successfully created task '%s' with ID: %s in project '%s'",
                task.title, task.id, project.name)
    return task


async def get_task(store: Storage, task_id: int, actor_id: int) -> Task:
    actor = await load_actor(store, actor_id)
    return await find_task_with_access(store, task_id, actor, Operation.READ)


async def find_project_tasks(store: Storage, project_id: int, actor_id: int,
                             status: TaskStatus | None = None) -> list[Task]:
    actor = await load_actor(store, actor_id)
    project = await find_project_with_access(store, project_id, actor)
    if not is_project_accessible(actor, project):
        # Owner of a deactivated project: the project is there but its contents are not readable
        logger.warning("User %s cannot read tasks of inactive project %s", actor.id, project.id)
        raise Unauthorized()
    filters = {"project_id": project.id}
    if status is not None:
        filters["status"] = status
    return await store.find_by(Task, **filters)


async def find_assigned_tasks(store: Storage, actor_id: int) -> list[Task]:
    actor = await load_actor(store, actor_id)
    return await store.find_by(Task, assignee_id=actor.id)


async def find_overdue_tasks(store: Storage, actor_id: int) -> list[Task]:
    """Past due and not DONE, across every project the actor can read."""
    actor = await load_actor(store, actor_id)
    criteria = [Task.due_date.is_not(None), Task.due_date < utcnow(), Task.status != TaskStatus.DONE]
    project_ids = await accessible_project_ids(store, actor)
    if project_ids is not None:
        criteria.append(Task.project_id.in_(project_ids))
    return await store.find_by(Task, *criteria, order_by=Task.due_date)


async def find_tasks_in_progress(store: Storage, actor_id: int) -> list[Task]:
    actor = await load_actor(store, actor_id)
    criteria = [Task.status.in_(IN_PROGRESS_STATUSES)]
    project_ids = await accessible_project_ids(store, actor)
    if project_ids is not None:
        criteria.append(Task.project_id.in_(project_ids))
    return await store.find_by(Task, *criteria)


async def find_tasks_by_priority(store: Storage, actor_id: int, priority: Priority) -> list[Task]:
    actor = await load_actor(store, actor_id)
    criteria = [Task.priority == priority]
    project_ids = await accessible_project_ids(store, actor)
    if project_ids is not None:
        criteria.append(Task.project_id.in_(project_ids))
    return await store.find_by(Task, *criteria)


def sort_by_priority(tasks: list[Task], descending: bool = True) -> list[Task]:
    return sorted(tasks, key=lambda t: t.priority.rank, reverse=descending)


async def _task_for_write(store: Storage, task_id: int, actor: User, action: str) -> Task:
    task = await find_task_with_access(store, task_id, actor, Operation.UPDATE)
    project = await owner_project(store, task)
    rules.ensure_project_active(project, action)
    return task


async def update_task(store: Storage, task_id: int, task_update: TaskUpdate, actor_id: int) -> Task:
    logger.info("Updating task ID: %s by user ID: %s", task_id, actor_id)

    async with store.transaction():
        actor = await load_actor(store, actor_id)
        task = await _task_for_write(store, task_id, actor, "update task")

        task_update = rules.validate_payload(TaskUpdate, task_update, exclude_unset=True)
        update_data = task_update.model_dump(exclude_unset=True)
        if "title" in update_data and update_data["title"] is None:
            update_data.pop("title")
        if "priority" in update_data and update_data["priority"] is None:
            update_data.pop("priority")
        if "due_date" in update_data:
            update_data["due_date"] = as_utc(update_data["due_date"])

        for key, value in update_data.items():
            setattr(task, key, value)
        task = await store.save(task)

    logger.info("Successfully updated task '%s' with ID: %s", task.title, task.id)
    return task


async def update_task_status(store: Storage, task_id: int, new_status: TaskStatus, actor_id: int) -> Task:
    logger.info("Changing status of task ID: %s to %s by user ID: %s", task_id, new_status.name, actor_id)

    async with store.transaction():
        actor = await load_actor(store, actor_id)
        task = await _task_for_write(store, task_id, actor, "change task status")

        if not check_transition(task.status, new_status):
            logger.debug("Task %s already in status %s", task.id, new_status.name)
            return task

        previous = task.status
        task.status = new_status
        task = await store.save(task)

    logger.info("Task %s moved %s -> %s", task.id, previous.name, new_status.name)
    return task


async def assign_task(store: Storage, task_id: int, assignee_id: int, actor_id: int) -> Task:
    logger.info("Assigning task ID: %s to user ID: %s by user ID: %s", task_id, assignee_id, actor_id)

    async with store.transaction():
        actor = await load_actor(store, actor_id)
        task = await _task_for_write(store, task_id, actor, "assign task")
        assignee = await _active_assignee(store, assignee_id)
        task.assignee_id = assignee.id
        task = await store.save(task)

    return task


async def unassign_task(store: Storage, task_id: int, actor_id: int) -> Task:
    logger.info("Unassigning task ID: %s by user ID: %s", task_id, actor_id)

    async with store.transaction():
        actor = await load_actor(store, actor_id)
        task = await find_task_with_access(store, task_id, actor, Operation.UPDATE)
        task.assignee_id = None
        task = await store.save(task)

    return task


async def delete_task_tree(store: Storage, task: Task) -> int:
    """Delete a task and its comments. Caller owns the transaction."""
    comments = await store.find_by(Comment, task_id=task.id)
    for comment in comments:
        await store.delete(comment)
    await store.delete(task)
    return len(comments)


async def delete_task(store: Storage, task_id: int, actor_id: int):
    logger.warning("Deleting task ID: %s by user ID: %s", task_id, actor_id)

    async with store.transaction():
        actor = await load_actor(store, actor_id)
        task = await find_task_with_access(store, task_id, actor, Operation.DELETE)
        removed_comments = await delete_task_tree(store, task)

    logger.warning("Successfully deleted task ID: %s (%s comments removed)", task_id, removed_comments)
