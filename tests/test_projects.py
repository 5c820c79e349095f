from datetime import timedelta

import pytest

from taskflow.exceptions import Conflict, InvalidState, NotFound, Unauthorized, ValidationFailed
from taskflow.models.comment import Comment
from taskflow.models.enums import TaskStatus
from taskflow.models.project import Project
from taskflow.models.tasks import Task
from taskflow.schemas.project import ProjectCreate, ProjectUpdate
from taskflow.services import projects as project_service
from taskflow.storage import Storage
from taskflow.utils.clock import utcnow


async def test_create_project(store, alice):
    project = await project_service.create_project(store, ProjectCreate(name="Apollo"), alice.id)
    assert project.id is not None
    assert project.owner_id == alice.id
    assert project.is_active is True


async def test_inactive_user_cannot_create_project(store, make_user):
    ghost = await make_user("ghost", is_active=False)
    with pytest.raises(InvalidState) as exc_info:
        await project_service.create_project(store, ProjectCreate(name="Apollo"), ghost.id)
    assert exc_info.value.message == "Cannot create project for inactive user"


async def test_name_conflict_ignores_case(store, alice, make_project):
    await make_project(alice, name="Alpha")
    with pytest.raises(Conflict) as exc_info:
        await project_service.create_project(store, ProjectCreate(name="alpha"), alice.id)
    assert exc_info.value.message == "Project name already exists: alpha"
    assert await store.count_by(Project) == 1


async def test_same_name_for_another_owner_is_fine(store, alice, bob, make_project):
    await make_project(alice, name="Alpha")
    project = await project_service.create_project(store, ProjectCreate(name="Alpha"), bob.id)
    assert project.owner_id == bob.id


async def test_same_name_as_inactive_project_is_fine(store, alice, make_project):
    await make_project(alice, name="Alpha", is_active=False)
    project = await project_service.create_project(store, ProjectCreate(name="ALPHA"), alice.id)
    assert project.is_active


async def test_blank_name_fails_validation(store, alice):
    with pytest.raises(ValidationFailed) as exc_info:
        await project_service.create_project(store, ProjectCreate.model_construct(name="   "), alice.id)
    assert "name" in exc_info.value.field_errors


async def test_reactivate_conflicts_with_taken_name(store, alice, make_project):
    old = await make_project(alice, name="Alpha", is_active=False)
    await make_project(alice, name="alpha")
    with pytest.raises(Conflict):
        await project_service.reactivate_project(store, old.id, alice.id)
    assert (await store.get(Project, old.id)).is_active is False


async def test_deactivate_then_reactivate(store, alice, make_project):
    project = await make_project(alice)
    project = await project_service.deactivate_project(store, project.id, alice.id)
    assert project.is_active is False
    project = await project_service.reactivate_project(store, project.id, alice.id)
    assert project.is_active is True


async def test_update_project_renames(store, alice, make_project):
    project = await make_project(alice, name="Alpha")
    await make_project(alice, name="Beta")

    # Case-only rename of itself is allowed
    renamed = await project_service.update_project(store, project.id, ProjectUpdate(name="ALPHA"), alice.id)
    assert renamed.name == "ALPHA"

    with pytest.raises(Conflict):
        await project_service.update_project(store, project.id, ProjectUpdate(name="beta"), alice.id)


async def test_stranger_cannot_update(store, alice, bob, make_project):
    project = await make_project(alice)
    with pytest.raises(Unauthorized):
        await project_service.update_project(store, project.id, ProjectUpdate(name="Mine now"), bob.id)


async def test_user_projects_listing(store, alice, bob, make_project):
    await make_project(alice, name="One")
    await make_project(alice, name="Two", is_active=False)
    await make_project(bob, name="Three")

    assert [p.name for p in await project_service.find_user_projects(store, alice.id)] == ["One"]
    names = [p.name for p in await project_service.find_user_projects(store, alice.id, include_inactive=True)]
    assert names == ["One", "Two"]


async def test_all_projects_is_admin_only(store, admin, alice, bob, make_project):
    await make_project(alice, name="One")
    await make_project(bob, name="Two", is_active=False)
    assert len(await project_service.find_all_projects(store, admin.id)) == 2
    assert len(await project_service.find_all_projects(store, admin.id, active_only=True)) == 1
    with pytest.raises(Unauthorized):
        await project_service.find_all_projects(store, alice.id)


async def test_projects_created_after(store, admin, alice, bob, make_project):
    await make_project(alice, name="One")
    await make_project(bob, name="Two")
    an_hour_ago = utcnow() - timedelta(hours=1)

    assert len(await project_service.find_projects_created_after(store, admin.id, an_hour_ago)) == 2
    assert [p.name for p in await project_service.find_projects_created_after(store, alice.id, an_hour_ago)] == ["One"]
    assert await project_service.find_projects_created_after(store, admin.id, utcnow() + timedelta(hours=1)) == []


async def test_transfer_ownership(store, alice, bob, make_project):
    project = await make_project(alice, name="Alpha")
    project = await project_service.transfer_ownership(store, project.id, bob.id, alice.id)
    assert project.owner_id == bob.id
    # The previous owner has no access left
    with pytest.raises(Unauthorized):
        await project_service.get_project(store, project.id, alice.id)


async def test_transfer_to_inactive_user_fails(store, alice, make_user, make_project):
    ghost = await make_user("ghost", is_active=False)
    project = await make_project(alice)
    with pytest.raises(InvalidState):
        await project_service.transfer_ownership(store, project.id, ghost.id, alice.id)


async def test_transfer_into_name_clash_fails(store, alice, bob, make_project):
    project = await make_project(alice, name="Alpha")
    await make_project(bob, name="ALPHA")
    with pytest.raises(Conflict):
        await project_service.transfer_ownership(store, project.id, bob.id, alice.id)
    assert (await store.get(Project, project.id)).owner_id == alice.id


async def test_delete_cascades(store, alice, bob, make_project, make_task, make_comment):
    project = await make_project(alice)
    keep = await make_project(bob, name="Keep")
    first = await make_task(project, title="First")
    second = await make_task(project, title="Second")
    kept_task = await make_task(keep, title="Kept")
    await make_comment(first, alice)
    await make_comment(second, alice)
    await make_comment(kept_task, bob)

    await project_service.delete_project(store, project.id, alice.id)

    assert await store.find(Project, project.id) is None
    assert await store.count_by(Task, project_id=project.id) == 0
    assert await store.count_by(Comment, Comment.task_id.in_([first.id, second.id])) == 0
    assert await store.count_by(Task) == 1
    assert await store.count_by(Comment) == 1


async def test_failed_cascade_leaves_everything(store, alice, make_project, make_task, make_comment, monkeypatch):
    project = await make_project(alice)
    task = await make_task(project)
    await make_comment(task, alice)
    await make_comment(task, alice)

    original_delete = Storage.delete

    async def failing_delete(self, entity):
        if isinstance(entity, Task):
            raise RuntimeError("disk full")
        await original_delete(self, entity)

    monkeypatch.setattr(Storage, "delete", failing_delete)
    with pytest.raises(RuntimeError):
        await project_service.delete_project(store, project.id, alice.id)
    monkeypatch.undo()

    # Comments were already flushed away when the task delete blew up
    assert await store.find(Project, project.id) is not None
    assert await store.count_by(Task, project_id=project.id) == 1
    assert await store.count_by(Comment, task_id=task.id) == 2


async def test_project_stats(store, alice, make_project, make_task, yesterday, next_week):
    project = await make_project(alice)
    await make_task(project, status=TaskStatus.TODO, due_date=yesterday)
    await make_task(project, status=TaskStatus.DONE, due_date=yesterday)
    await make_task(project, status=TaskStatus.IN_PROGRESS, due_date=next_week)
    await make_task(project, status=TaskStatus.IN_PROGRESS)

    stats = await project_service.get_project_stats(store, project.id, alice.id)
    assert stats["project"].id == project.id
    assert stats["total_tasks"] == 4
    assert stats["tasks_by_status"]["IN_PROGRESS"] == 2
    assert stats["tasks_by_status"]["DONE"] == 1
    assert stats["tasks_by_status"]["CANCELLED"] == 0
    assert stats["overdue_tasks"] == 1


async def test_find_project_by_id(store, alice, make_project):
    project = await make_project(alice)
    assert (await project_service.find_project(store, project.id)).name == "Apollo"
    with pytest.raises(NotFound):
        await project_service.find_project(store, project.id + 1)


@pytest.mark.parametrize("existing, requested", [
    ("Ärger", "äRGER"),
    ("ÉCOLE", "école"),
    ("Straße", "STRASSE"),
])
async def test_name_conflict_folds_non_ascii_case(store, alice, make_project, existing, requested):
    await make_project(alice, name=existing)
    with pytest.raises(Conflict):
        await project_service.create_project(store, ProjectCreate(name=requested), alice.id)
    assert await store.count_by(Project) == 1


async def test_update_project_folds_non_ascii_case(store, alice, make_project):
    project = await make_project(alice, name="école")
    await make_project(alice, name="Ärger")

    renamed = await project_service.update_project(store, project.id, ProjectUpdate(name="ÉCOLE"), alice.id)
    assert renamed.name == "ÉCOLE"

    with pytest.raises(Conflict):
        await project_service.update_project(store, project.id, ProjectUpdate(name="ärger"), alice.id)


async def test_every_field_error_is_reported(store, alice):
    with pytest.raises(ValidationFailed) as exc_info:
        await project_service.create_project(
            store, ProjectCreate.model_construct(name="", description="x" * 1001), alice.id,
        )
    assert set(exc_info.value.field_errors) == {"name", "description"}


async def test_name_is_sanitized_before_validation(store, alice):
    project = await project_service.create_project(
        store, ProjectCreate.model_construct(name="  <i>Apollo</i> "), alice.id,
    )
    assert project.name == "Apollo"

    with pytest.raises(ValidationFailed) as exc_info:
        await project_service.create_project(store, ProjectCreate.model_construct(name="<b></b>"), alice.id)
    assert "name" in exc_info.value.field_errors


async def test_projects_with_tasks(store, alice, bob, make_project, make_task):
    apollo = await make_project(alice, name="Apollo")
    await make_project(alice, name="Empty")
    await make_project(alice, name="Shelved", is_active=False)
    other = await make_project(bob, name="Other")
    first = await make_task(apollo, title="First")
    second = await make_task(apollo, title="Second")
    await make_task(other, title="Not mine")

    result = await project_service.find_projects_with_tasks(store, alice.id)
    assert [entry["project"].name for entry in result] == ["Apollo", "Empty"]
    assert [t.id for t in result[0]["tasks"]] == [first.id, second.id]
    assert result[1]["tasks"] == []


async def test_projects_with_tasks_when_user_has_none(store, bob):
    assert await project_service.find_projects_with_tasks(store, bob.id) == []


async def test_stats_of_inactive_project_need_admin(store, admin, alice, make_project, make_task):
    project = await make_project(alice, is_active=False)
    await make_task(project)
    with pytest.raises(Unauthorized):
        await project_service.get_project_stats(store, project.id, alice.id)
    assert (await project_service.get_project_stats(store, project.id, admin.id))["total_tasks"] == 1
