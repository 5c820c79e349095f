"""
Invariant checks shared by the mutating service operations.

Each service operation resolves the target, runs the access check and then
calls into here before anything is written. Every helper either returns
quietly or raises one of the typed errors from ``taskflow.exceptions``.
"""
import logging
from datetime import datetime
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from taskflow.exceptions import Conflict, InvalidState, ValidationFailed
from taskflow.models.project import Project
from taskflow.models.user import User
from taskflow.storage import Storage
from taskflow.utils.clock import utcnow, as_utc

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


# ── Field shapes ────────────────────────────────────────

def validate_payload(schema: type[SchemaT], payload: BaseModel, **dump_options) -> SchemaT:
    """
    Run ``payload`` through ``schema`` again and return the validated copy.

    Callers outside the HTTP layer may hand in unvalidated models
    (``model_construct``); the schema's own constraints are the only field
    rules, and every violation is reported at once.
    """
    try:
        return schema.model_validate(payload.model_dump(**dump_options))
    except ValidationError as e:
        failed = ValidationFailed.from_pydantic(e.errors())
        logger.warning("Validation failed: %s", failed.field_errors)
        raise failed from e


def names_match(left: str, right: str) -> bool:
    return left.casefold() == right.casefold()


def ensure_due_date_not_past(due_date: datetime | None):
    if due_date is not None and as_utc(due_date) < utcnow():
        logger.warning("Rejected due date in the past: %s", due_date)
        raise ValidationFailed({"due_date": "Due date cannot be in the past"})


# ── Structural invariants ───────────────────────────────

def ensure_user_active(user: User, message: str):
    if not user.is_active:
        logger.warning("User %s is not active: %s", user.id, message)
        raise InvalidState(message)


def ensure_project_active(project: Project, action: str):
    if not project.is_active:
        logger.warning("Project %s is not active, cannot %s", project.id, action)
        raise InvalidState(f"Cannot {action} in inactive project")


async def ensure_project_name_available(store: Storage, owner_id: int, name: str, exclude_id: int | None = None):
    """
    Names are unique, ignoring case, among one owner's active projects.

    Case folding happens here rather than in SQL: SQLite's ``lower()`` only
    folds ASCII.
    """
    criteria = [Project.owner_id == owner_id, Project.is_active == True]
    if exclude_id is not None:
        criteria.append(Project.id != exclude_id)
    active = await store.find_by(Project, *criteria)
    if any(names_match(p.name, name) for p in active):
        logger.warning("Project name '%s' already exists for user %s", name, owner_id)
        raise Conflict(f"Project name already exists: {name}")


async def ensure_unique_username(store: Storage, username: str, exclude_id: int | None = None):
    if await store.exists_by_unique_key(User, "username", username, exclude_id=exclude_id):
        logger.warning("Username '%s' already exists", username)
        raise Conflict(f"Username already exists: {username}")


async def ensure_unique_email(store: Storage, email: str, exclude_id: int | None = None):
    if await store.exists_by_unique_key(User, "email", email, exclude_id=exclude_id):
        logger.warning("Email '%s' already exists", email)
        raise Conflict(f"Email already exists: {email}")
