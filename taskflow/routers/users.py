from fastapi import APIRouter, Depends, status
from taskflow.dependencies import get_store, get_current_user
from taskflow.models.enums import Role
from taskflow.models.user import User as UserModel
from taskflow.schemas.user import UserCreate, UserResponse, UserUpdate, PasswordUpdate, RoleUpdate
from taskflow.services import users as user_service
from taskflow.storage import Storage

router = APIRouter(prefix="/users", tags=["users"])

@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(user: UserCreate, store: Storage = Depends(get_store)):
    # Self-registration never grants a role or activation state
    user = user.model_copy(update={"role": None, "is_active": None})
    return await user_service.register_user(store, user)

@router.get("/me", response_model=UserResponse)
async def get_me(current_user: UserModel = Depends(get_current_user)):
    return current_user

@router.get("/", response_model=list[UserResponse])
async def list_users(
    active_only: bool = False,
    role: Role | None = None,
    store: Storage = Depends(get_store),
    current_user: UserModel = Depends(get_current_user),
):
    if role is not None:
        return await user_service.find_users_by_role(store, current_user.id, role)
    return await user_service.find_all_users(store, current_user.id, active_only=active_only)

@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, store: Storage = Depends(get_store),
                   current_user: UserModel = Depends(get_current_user)):
    return await user_service.find_by_id(store, user_id)

@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(user_id: int, user_update: UserUpdate, store: Storage = Depends(get_store),
                      current_user: UserModel = Depends(get_current_user)):
    return await user_service.update_profile(store, current_user.id, user_id, user_update)

@router.put("/{user_id}/password", response_model=UserResponse)
async def update_password(user_id: int, password_update: PasswordUpdate, store: Storage = Depends(get_store),
                          current_user: UserModel = Depends(get_current_user)):
    return await user_service.update_password(store, current_user.id, user_id, password_update)

@router.put("/{user_id}/role", response_model=UserResponse)
async def set_role(user_id: int, role_update: RoleUpdate, store: Storage = Depends(get_store),
                   current_user: UserModel = Depends(get_current_user)):
    return await user_service.set_role(store, current_user.id, user_id, role_update.role)

@router.post("/{user_id}/deactivate", response_model=UserResponse)
async def deactivate_user(user_id: int, store: Storage = Depends(get_store),
                          current_user: UserModel = Depends(get_current_user)):
    return await user_service.deactivate_user(store, current_user.id, user_id)

@router.post("/{user_id}/activate", response_model=UserResponse)
async def activate_user(user_id: int, store: Storage = Depends(get_store),
                        current_user: UserModel = Depends(get_current_user)):
    return await user_service.activate_user(store, current_user.id, user_id)
