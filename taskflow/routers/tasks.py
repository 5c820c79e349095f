from fastapi import APIRouter, Depends, status

from taskflow.dependencies import get_store, get_current_user
from taskflow.models.enums import TaskStatus, Priority
from taskflow.models.user import User as UserModel
from taskflow.schemas.task import TaskCreate, Task as TaskSchema, TaskUpdate, TaskStatusUpdate, TaskAssign
from taskflow.services import tasks as task_service
from taskflow.storage import Storage

router = APIRouter(tags=["tasks"])

@router.post("/projects/{project_id}/tasks", response_model=TaskSchema, status_code=status.HTTP_201_CREATED)
async def create_task(
    project_id: int,
    task_data: TaskCreate,
    store: Storage = Depends(get_store),
    current_user: UserModel = Depends(get_current_user)
):
    return await task_service.create_task(store, task_data, project_id, current_user.id)

@router.get("/projects/{project_id}/tasks", response_model=list[TaskSchema])
async def list_project_tasks(
    project_id: int,
    status: TaskStatus | None = None,
    by_priority: bool = False,
    store: Storage = Depends(get_store),
    current_user: UserModel = Depends(get_current_user)
):
    tasks = await task_service.find_project_tasks(store, project_id, current_user.id, status)
    if by_priority:
        tasks = task_service.sort_by_priority(tasks)
    return tasks

@router.get("/tasks/overdue", response_model=list[TaskSchema])
async def list_overdue_tasks(store: Storage = Depends(get_store),
                             current_user: UserModel = Depends(get_current_user)):
    return await task_service.find_overdue_tasks(store, current_user.id)

@router.get("/tasks/in-progress", response_model=list[TaskSchema])
async def list_tasks_in_progress(store: Storage = Depends(get_store),
                                 current_user: UserModel = Depends(get_current_user)):
    return await task_service.find_tasks_in_progress(store, current_user.id)

@router.get("/tasks/assigned", response_model=list[TaskSchema])
async def list_assigned_tasks(store: Storage = Depends(get_store),
                              current_user: UserModel = Depends(get_current_user)):
    return await task_service.find_assigned_tasks(store, current_user.id)

@router.get("/tasks/by-priority", response_model=list[TaskSchema])
async def list_tasks_by_priority(priority: Priority, store: Storage = Depends(get_store),
                                 current_user: UserModel = Depends(get_current_user)):
    return await task_service.find_tasks_by_priority(store, current_user.id, priority)

@router.get("/tasks/{task_id}", response_model=TaskSchema)
async def get_task(task_id: int, store: Storage = Depends(get_store),
                   current_user: UserModel = Depends(get_current_user)):
    return await task_service.get_task(store, task_id, current_user.id)

@router.patch("/tasks/{task_id}", response_model=TaskSchema)
async def update_task(task_id: int, update_data: TaskUpdate, store: Storage = Depends(get_store),
                      current_user: UserModel = Depends(get_current_user)):
    return await task_service.update_task(store, task_id, update_data, current_user.id)

@router.put("/tasks/{task_id}/status", response_model=TaskSchema)
async def update_task_status(task_id: int, status_update: TaskStatusUpdate, store: Storage = Depends(get_store),
                             current_user: UserModel = Depends(get_current_user)):
    return await task_service.update_task_status(store, task_id, status_update.status, current_user.id)

@router.put("/tasks/{task_id}/assignee", response_model=TaskSchema)
async def assign_task(task_id: int, assignment: TaskAssign, store: Storage = Depends(get_store),
                      current_user: UserModel = Depends(get_current_user)):
    return await task_service.assign_task(store, task_id, assignment.assignee_id, current_user.id)

@router.delete("/tasks/{task_id}/assignee", response_model=TaskSchema)
async def unassign_task(task_id: int, store: Storage = Depends(get_store),
                        current_user: UserModel = Depends(get_current_user)):
    return await task_service.unassign_task(store, task_id, current_user.id)

@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: int, store: Storage = Depends(get_store),
                      current_user: UserModel = Depends(get_current_user)):
    await task_service.delete_task(store, task_id, current_user.id)
    return None
