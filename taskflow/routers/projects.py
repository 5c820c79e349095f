from datetime import datetime

from fastapi import APIRouter, Depends, status
from taskflow.dependencies import get_store, get_current_user
from taskflow.models.user import User as UserModel
from taskflow.schemas.project import ProjectCreate, ProjectUpdate, ProjectResponse, ProjectStats, ProjectWithTasks, OwnershipTransfer
from taskflow.services import projects as project_service
from taskflow.storage import Storage

router = APIRouter(prefix="/projects", tags=["projects"])

@router.post("/", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    store: Storage = Depends(get_store),
    current_user: UserModel = Depends(get_current_user)
):
    return await project_service.create_project(store, project_data, current_user.id)

@router.get("/", response_model=list[ProjectResponse])
async def list_my_projects(
    include_inactive: bool = False,
    created_after: datetime | None = None,
    store: Storage = Depends(get_store),
    current_user: UserModel = Depends(get_current_user)
):
    if created_after is not None:
        return await project_service.find_projects_created_after(store, current_user.id, created_after)
    return await project_service.find_user_projects(store, current_user.id, include_inactive)

@router.get("/all", response_model=list[ProjectResponse])
async def list_all_projects(
    active_only: bool = False,
    store: Storage = Depends(get_store),
    current_user: UserModel = Depends(get_current_user)
):
    return await project_service.find_all_projects(store, current_user.id, active_only)

@router.get("/with-tasks", response_model=list[ProjectWithTasks])
async def list_projects_with_tasks(store: Storage = Depends(get_store),
                                   current_user: UserModel = Depends(get_current_user)):
    return await project_service.find_projects_with_tasks(store, current_user.id)

@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: int, store: Storage = Depends(get_store),
                      current_user: UserModel = Depends(get_current_user)):
    return await project_service.get_project(store, project_id, current_user.id)

@router.get("/{project_id}/stats", response_model=ProjectStats)
async def get_project_stats(project_id: int, store: Storage = Depends(get_store),
                            current_user: UserModel = Depends(get_current_user)):
    return await project_service.get_project_stats(store, project_id, current_user.id)

@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(project_id: int, project_update: ProjectUpdate, store: Storage = Depends(get_store),
                         current_user: UserModel = Depends(get_current_user)):
    return await project_service.update_project(store, project_id, project_update, current_user.id)

@router.post("/{project_id}/deactivate", response_model=ProjectResponse)
async def deactivate_project(project_id: int, store: Storage = Depends(get_store),
                             current_user: UserModel = Depends(get_current_user)):
    return await project_service.deactivate_project(store, project_id, current_user.id)

@router.post("/{project_id}/reactivate", response_model=ProjectResponse)
async def reactivate_project(project_id: int, store: Storage = Depends(get_store),
                             current_user: UserModel = Depends(get_current_user)):
    return await project_service.reactivate_project(store, project_id, current_user.id)

@router.post("/{project_id}/transfer", response_model=ProjectResponse)
async def transfer_ownership(project_id: int, transfer: OwnershipTransfer, store: Storage = Depends(get_store),
                             current_user: UserModel = Depends(get_current_user)):
    return await project_service.transfer_ownership(store, project_id, transfer.new_owner_id, current_user.id)

@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: int, store: Storage = Depends(get_store),
                         current_user: UserModel = Depends(get_current_user)):
    await project_service.delete_project(store, project_id, current_user.id)
    return None
