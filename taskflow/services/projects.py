import logging
from datetime import datetime

from taskflow.exceptions import Unauthorized
from taskflow.models.enums import TaskStatus
from taskflow.models.project import Project
from taskflow.models.tasks import Task
from taskflow.models.user import User
from taskflow.schemas.project import ProjectCreate, ProjectUpdate
from taskflow.services import rules
from taskflow.services.access import load_actor, find_project_with_access, is_project_accessible
from taskflow.services.tasks import delete_task_tree
from taskflow.storage import Storage
from taskflow.utils.clock import utcnow, as_utc

logger = logging.getLogger(__name__)


async def create_project(store: Storage, project_data: ProjectCreate, actor_id: int) -> Project:
    logger.info("Creating new project '%s' for user ID: %s", project_data.name, actor_id)

    async with store.transaction():
        owner = await load_actor(store, actor_id)
        rules.ensure_user_active(owner, "Cannot create project for inactive user")
        project_data = rules.validate_payload(ProjectCreate, project_data)
        await rules.ensure_project_name_available(store, owner.id, project_data.name)

        project = await store.save(Project(
            name=project_data.name,
            description=project_data.description,
            owner_id=owner.id,
            is_active=True,
        ))

    logger.info("Successfully created project '%s' with ID: %s for user: %s",
                project.name, project.id, owner.username)
    return project


async def find_project(store: Storage, project_id: int) -> Project:
    logger.debug("Finding project ID: %s", project_id)
    return await store.get(Project, project_id)


async def get_project(store: Storage, project_id: int, actor_id: int) -> Project:
    actor = await load_actor(store, actor_id)
    return await find_project_with_access(store, project_id, actor)


async def find_user_projects(store: Storage, actor_id: int, include_inactive: bool = False) -> list[Project]:
    logger.debug("Finding projects for user ID: %s, include_inactive: %s", actor_id, include_inactive)
    user = await load_actor(store, actor_id)
    if include_inactive:
        return await store.find_by(Project, owner_id=user.id)
    return await store.find_by(Project, owner_id=user.id, is_active=True)


async def find_projects_with_tasks(store: Storage, actor_id: int) -> list[dict]:
    """The actor's active projects, each paired with its tasks. Projects without tasks are included."""
    logger.debug("Finding projects with tasks for user ID: %s", actor_id)
    user = await load_actor(store, actor_id)
    projects = await store.find_by(Project, owner_id=user.id, is_active=True)
    if not projects:
        return []

    tasks_by_project = {p.id: [] for p in projects}
    for task in await store.find_by(Task, Task.project_id.in_(list(tasks_by_project))):
        tasks_by_project[task.project_id].append(task)
    return [{"project": p, "tasks": tasks_by_project[p.id]} for p in projects]


async def find_all_projects(store: Storage, actor_id: int, active_only: bool = False) -> list[Project]:
    actor = await load_actor(store, actor_id)
    if not actor.is_admin:
        raise Unauthorized()
    if active_only:
        return await store.find_by(Project, is_active=True)
    return await store.find_by(Project)


async def find_projects_created_after(store: Storage, actor_id: int, since: datetime) -> list[Project]:
    """Projects created after ``since``; non-admins only see their own."""
    logger.debug("Finding projects created after: %s", since)
    actor = await load_actor(store, actor_id)
    criteria = [Project.created_at > as_utc(since)]
    if not actor.is_admin:
        criteria.append(Project.owner_id == actor.id)
    return await store.find_by(Project, *criteria)


async def update_project(store: Storage, project_id: int, project_update: ProjectUpdate, actor_id: int) -> Project:
    logger.info("Updating project ID: %s by user ID: %s", project_id, actor_id)

    async with store.transaction():
        actor = await load_actor(store, actor_id)
        project = await find_project_with_access(store, project_id, actor)
        project_update = rules.validate_payload(ProjectUpdate, project_update)

        if project.is_active and not rules.names_match(project.name, project_update.name):
            await rules.ensure_project_name_available(
                store, project.owner_id, project_update.name, exclude_id=project.id
            )

        project.name = project_update.name
        project.description = project_update.description
        project = await store.save(project)

    logger.info("Successfully updated project '%s' with ID: %s", project.name, project.id)
    return project


async def deactivate_project(store: Storage, project_id: int, actor_id: int) -> Project:
    logger.info("Deactivating project ID: %s by user ID: %s", project_id, actor_id)

    async with store.transaction():
        actor = await load_actor(store, actor_id)
        project = await find_project_with_access(store, project_id, actor)
        project.is_active = False
        project = await store.save(project)

    logger.info("Successfully deactivated project '%s' with ID: %s", project.name, project.id)
    return project


async def reactivate_project(store: Storage, project_id: int, actor_id: int) -> Project:
    logger.info("Reactivating project ID: %s by user ID: %s", project_id, actor_id)

    async with store.transaction():
        actor = await load_actor(store, actor_id)
        project = await find_project_with_access(store, project_id, actor)
        if not project.is_active:
            # Another active project may have taken the name meanwhile
            await rules.ensure_project_name_available(
                store, project.owner_id, project.name, exclude_id=project.id
            )
        project.is_active = True
        project = await store.save(project)

    logger.info("Successfully reactivated project '%s' with ID: %s", project.name, project.id)
    return project


async def delete_project_tree(store: Storage, project: Project) -> int:
    """Delete comments, then tasks, then the project. Caller owns the transaction."""
    tasks = await store.find_by(Task, project_id=project.id)
    for task in tasks:
        await delete_task_tree(store, task)
    await store.delete(project)
    return len(tasks)


async def delete_project(store: Storage, project_id: int, actor_id: int):
    logger.warning("Permanently deleting project ID: %s by user ID: %s", project_id, actor_id)

    async with store.transaction():
        actor = await load_actor(store, actor_id)
        project = await find_project_with_access(store, project_id, actor)
        name = project.name
        removed_tasks = await delete_project_tree(store, project)

    logger.warning("Successfully deleted project '%s' with ID: %s (%s tasks removed)",
                   name, project_id, removed_tasks)


async def transfer_ownership(store: Storage, project_id: int, new_owner_id: int, actor_id: int) -> Project:
    logger.info("Transferring ownership of project ID: %s to user ID: %s", project_id, new_owner_id)

    async with store.transaction():
        actor = await load_actor(store, actor_id)
        project = await find_project_with_access(store, project_id, actor)
        new_owner = await store.get(User, new_owner_id)
        rules.ensure_user_active(new_owner, "Cannot transfer ownership to inactive user")

        if project.is_active and new_owner.id != project.owner_id:
            await rules.ensure_project_name_available(store, new_owner.id, project.name, exclude_id=project.id)

        previous_owner_id = project.owner_id
        project.owner_id = new_owner.id
        project = await store.save(project)

    logger.info("Successfully transferred ownership of project '%s' from user %s to %s",
                project.name, previous_owner_id, new_owner.username)
    return project


async def get_project_stats(store: Storage, project_id: int, actor_id: int) -> dict:
    logger.debug("Getting project stats for project ID: %s by user ID: %s", project_id, actor_id)
    actor = await load_actor(store, actor_id)
    project = await find_project_with_access(store, project_id, actor)
    if not is_project_accessible(actor, project):
        logger.warning("User %s cannot read stats of inactive project %s", actor.id, project.id)
        raise Unauthorized()

    tasks_by_status = {}
    for status in TaskStatus:
        tasks_by_status[status.name] = await store.count_by(Task, project_id=project.id, status=status)

    overdue = await store.count_by(
        Task,
        Task.project_id == project.id,
        Task.due_date.is_not(None),
        Task.due_date < utcnow(),
        Task.status != TaskStatus.DONE,
    )
    return {
        "project": project,
        "total_tasks": sum(tasks_by_status.values()),
        "tasks_by_status": tasks_by_status,
        "overdue_tasks": overdue,
    }
