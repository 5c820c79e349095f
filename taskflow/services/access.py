"""
Access control for projects and everything they contain.

Every Task and Comment is owned through its project: Task -> Project,
Comment -> Task -> Project. Decisions are made against that project only.

There are two predicates:

* ``has_project_access`` - admin, or the project's owner. Activation is not
  looked at; this is what lets an owner reactivate a disabled project.
* ``is_project_accessible`` - admin, or the owner of an *active* project.
  Used for reads of a project's contents.

Admins are checked first and always pass, whatever their own activation
state.
"""
import enum
import logging

from taskflow.config import settings
from taskflow.exceptions import NotFound, Unauthorized
from taskflow.models.comment import Comment
from taskflow.models.project import Project
from taskflow.models.tasks import Task
from taskflow.models.user import User
from taskflow.storage import Storage

logger = logging.getLogger(__name__)


class Operation(enum.Enum):
    READ = "READ"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


def has_project_access(actor: User, project: Project) -> bool:
    if actor.is_admin:
        return True
    return project.owner_id == actor.id


def is_project_accessible(actor: User, project: Project) -> bool:
    if actor.is_admin:
        return True
    return bool(project.is_active) and project.owner_id == actor.id


async def owner_project(store: Storage, resource) -> Project:
    """Walk the owner chain up to the project that owns ``resource``."""
    if isinstance(resource, Project):
        return resource
    if isinstance(resource, Task):
        return await store.get(Project, resource.project_id)
    if isinstance(resource, Comment):
        task = await store.get(Task, resource.task_id)
        return await store.get(Project, task.project_id)
    raise TypeError(f"Unsupported resource type: {type(resource).__name__}")


async def can_access(store: Storage, actor: User, resource, operation: Operation) -> bool:
    if actor.is_admin:
        return True
    project = await owner_project(store, resource)
    if operation == Operation.READ:
        return is_project_accessible(actor, project)
    return has_project_access(actor, project)


async def check_access(store: Storage, actor: User, resource, operation: Operation):
    if not await can_access(store, actor, resource, operation):
        logger.warning("User %s denied %s on %s %s",
                       actor.id, operation.value, type(resource).__name__, resource.id)
        raise Unauthorized()


async def load_actor(store: Storage, actor_id: int) -> User:
    return await store.get(User, actor_id)


async def accessible_project_ids(store: Storage, actor: User) -> list[int] | None:
    """Ids of the projects whose contents ``actor`` can read. None means every project (admins)."""
    if actor.is_admin:
        return None
    projects = await store.find_by(Project, owner_id=actor.id, is_active=True)
    return [p.id for p in projects]


async def _resolve(store: Storage, actor: User, model, entity_id):
    entity = await store.find(model, entity_id)
    if entity is None:
        logger.warning("%s not found with ID: %s", model.__name__, entity_id)
        # Non-admins get the same answer for "missing" as for "not yours"
        if settings.CONCEAL_MISSING_RESOURCES and not actor.is_admin:
            raise Unauthorized()
        raise NotFound(model.__name__, entity_id)
    return entity


async def find_project_with_access(store: Storage, project_id: int, actor: User) -> Project:
    """Ownership check without the activation gate (owner or admin)."""
    logger.debug("Finding project ID: %s for user ID: %s", project_id, actor.id)
    project = await _resolve(store, actor, Project, project_id)
    if not has_project_access(actor, project):
        logger.warning("User %s denied access to project %s", actor.id, project_id)
        raise Unauthorized()
    return project


async def find_task_with_access(store: Storage, task_id: int, actor: User,
                                operation: Operation = Operation.READ) -> Task:
    logger.debug("Finding task ID: %s for user ID: %s", task_id, actor.id)
    task = await _resolve(store, actor, Task, task_id)
    await check_access(store, actor, task, operation)
    return task


async def find_comment_with_access(store: Storage, comment_id: int, actor: User,
                                   operation: Operation = Operation.READ) -> Comment:
    logger.debug("Finding comment ID: %s for user ID: %s", comment_id, actor.id)
    comment = await _resolve(store, actor, Comment, comment_id)
    await check_access(store, actor, comment, operation)
    return comment
