"""
Task workflow rules.

The transition table lives on ``TaskStatus``; the task service calls
``check_transition`` before changing a status.
"""
from taskflow.exceptions import InvalidTransition
from taskflow.models.enums import TaskStatus


def check_transition(current: TaskStatus, requested: TaskStatus) -> bool:
    """
    Validate a status change.

    Returns ``False`` for a same-state request (nothing to do), ``True`` for a
    legal edge, and raises ``InvalidTransition`` for anything else.
    """
    if requested == current:
        return False
    if not current.can_transition_to(requested):
        raise InvalidTransition(current, requested)
    return True


def allowed_transitions(current: TaskStatus) -> list[TaskStatus]:
    return [status for status in TaskStatus if current.can_transition_to(status)]
