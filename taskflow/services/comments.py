import logging

from sqlalchemy import select

from taskflow.models.comment import Comment, RECENT_WINDOW
from taskflow.models.tasks import Task
from taskflow.schemas.comment import CommentCreate, CommentUpdate
from taskflow.services import rules
from taskflow.services.access import (
    Operation,
    load_actor,
    owner_project,
    find_task_with_access,
    find_comment_with_access,
    accessible_project_ids,
)
from taskflow.storage import Storage
from taskflow.utils.clock import utcnow

logger = logging.getLogger(__name__)


async def create_comment(store: Storage, task_id: int, comment_data: CommentCreate, actor_id: int) -> Comment:
    logger.info("Adding comment to task ID: %s by user ID: %s", task_id, actor_id)

    async with store.transaction():
        author = await load_actor(store, actor_id)
        task = await find_task_with_access(store, task_id, author, Operation.CREATE)
        rules.ensure_project_active(await owner_project(store, task), "add comment")
        rules.ensure_user_active(author, "Cannot add comment as inactive user")
        comment_data = rules.validate_payload(CommentCreate, comment_data)

        comment = await store.save(Comment(
            content=comment_data.content,
            task_id=task.id,
            author_id=author.id,
            is_edited=False,
        ))

    logger.info("Successfully added comment ID: %s to task ID: %s", comment.id, task.id)
    return comment


async def get_comment(store: Storage, comment_id: int, actor_id: int) -> Comment:
    actor = await load_actor(store, actor_id)
    return await find_comment_with_access(store, comment_id, actor, Operation.READ)


async def find_task_comments(store: Storage, task_id: int, actor_id: int) -> list[Comment]:
    """Newest first."""
    actor = await load_actor(store, actor_id)
    task = await find_task_with_access(store, task_id, actor, Operation.READ)
    return await store.find_by(Comment, task_id=task.id, order_by=(Comment.created_at.desc(), Comment.id.desc()))


async def find_recent_comments(store: Storage, task_id: int, actor_id: int) -> list[Comment]:
    actor = await load_actor(store, actor_id)
    task = await find_task_with_access(store, task_id, actor, Operation.READ)
    return await store.find_by(
        Comment,
        Comment.created_at > utcnow() - RECENT_WINDOW,
        task_id=task.id,
        order_by=(Comment.created_at.desc(), Comment.id.desc()),
    )


async def _readable_comments(store: Storage, actor_id: int, *criteria) -> list[Comment]:
    actor = await load_actor(store, actor_id)
    criteria = list(criteria)
    project_ids = await accessible_project_ids(store, actor)
    if project_ids is not None:
        readable_tasks = select(Task.id).where(Task.project_id.in_(project_ids))
        criteria.append(Comment.task_id.in_(readable_tasks))
    return await store.find_by(Comment, *criteria, order_by=(Comment.created_at.desc(), Comment.id.desc()))


async def find_comments_by_author(store: Storage, actor_id: int, author_id: int) -> list[Comment]:
    """Everything ``author_id`` wrote that the actor can read, newest first."""
    return await _readable_comments(store, actor_id, Comment.author_id == author_id)


async def find_edited_comments(store: Storage, actor_id: int) -> list[Comment]:
    return await _readable_comments(store, actor_id, Comment.is_edited == True)


async def edit_comment(store: Storage, comment_id: int, comment_update: CommentUpdate, actor_id: int) -> Comment:
    logger.info("Editing comment ID: %s by user ID: %s", comment_id, actor_id)

    async with store.transaction():
        actor = await load_actor(store, actor_id)
        comment = await find_comment_with_access(store, comment_id, actor, Operation.UPDATE)
        rules.ensure_project_active(await owner_project(store, comment), "edit comment")
        comment_update = rules.validate_payload(CommentUpdate, comment_update)

        if comment_update.content != comment.content:
            comment.content = comment_update.content
            comment.mark_as_edited()
            comment = await store.save(comment)

    return comment


async def delete_comment(store: Storage, comment_id: int, actor_id: int):
    logger.info("Deleting comment ID: %s by user ID: %s", comment_id, actor_id)

    async with store.transaction():
        actor = await load_actor(store, actor_id)
        comment = await find_comment_with_access(store, comment_id, actor, Operation.DELETE)
        await store.delete(comment)

    logger.info("Successfully deleted comment ID: %s", comment_id)
