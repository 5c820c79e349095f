from fastapi import APIRouter, Depends, status

from taskflow.dependencies import get_store, get_current_user
from taskflow.models.user import User as UserModel
from taskflow.schemas.comment import CommentCreate, CommentUpdate, CommentResponse
from taskflow.services import comments as comment_service
from taskflow.storage import Storage

router = APIRouter(tags=["comments"])

@router.post("/tasks/{task_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(task_id: int, comment_data: CommentCreate, store: Storage = Depends(get_store),
                         current_user: UserModel = Depends(get_current_user)):
    return await comment_service.create_comment(store, task_id, comment_data, current_user.id)

@router.get("/tasks/{task_id}/comments", response_model=list[CommentResponse])
async def list_comments(task_id: int, recent_only: bool = False, store: Storage = Depends(get_store),
                        current_user: UserModel = Depends(get_current_user)):
    if recent_only:
        return await comment_service.find_recent_comments(store, task_id, current_user.id)
    return await comment_service.find_task_comments(store, task_id, current_user.id)

@router.get("/comments/edited", response_model=list[CommentResponse])
async def list_edited_comments(store: Storage = Depends(get_store),
                               current_user: UserModel = Depends(get_current_user)):
    return await comment_service.find_edited_comments(store, current_user.id)

@router.get("/users/{author_id}/comments", response_model=list[CommentResponse])
async def list_comments_by_author(author_id: int, store: Storage = Depends(get_store),
                                  current_user: UserModel = Depends(get_current_user)):
    return await comment_service.find_comments_by_author(store, current_user.id, author_id)

@router.get("/comments/{comment_id}", response_model=CommentResponse)
async def get_comment(comment_id: int, store: Storage = Depends(get_store),
                      current_user: UserModel = Depends(get_current_user)):
    return await comment_service.get_comment(store, comment_id, current_user.id)

@router.patch("/comments/{comment_id}", response_model=CommentResponse)
async def edit_comment(comment_id: int, comment_update: CommentUpdate, store: Storage = Depends(get_store),
                       current_user: UserModel = Depends(get_current_user)):
    return await comment_service.edit_comment(store, comment_id, comment_update, current_user.id)

@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(comment_id: int, store: Storage = Depends(get_store),
                         current_user: UserModel = Depends(get_current_user)):
    await comment_service.delete_comment(store, comment_id, current_user.id)
    return None
