import pytest

from taskflow.exceptions import InvalidTransition
from taskflow.models.enums import TaskStatus, Priority, TRANSITIONS
from taskflow.models.tasks import Task
from taskflow.services.lifecycle import check_transition, allowed_transitions
from taskflow.services.tasks import sort_by_priority


@pytest.mark.parametrize("status", list(TaskStatus))
def test_self_transition_is_a_noop(status):
    assert check_transition(status, status) is False


@pytest.mark.parametrize("status", [TaskStatus.DONE, TaskStatus.CANCELLED])
def test_terminal_states_have_no_outbound_edges(status):
    assert status.is_terminal
    assert allowed_transitions(status) == []
    for target in TaskStatus:
        if target != status:
            with pytest.raises(InvalidTransition):
                check_transition(status, target)


def test_non_terminal_states_can_be_cancelled():
    for status, targets in TRANSITIONS.items():
        if not status.is_terminal:
            assert TaskStatus.CANCELLED in targets, status


def test_testing_to_done_is_allowed():
    assert check_transition(TaskStatus.TESTING, TaskStatus.DONE) is True


def test_todo_to_done_reports_both_states():
    with pytest.raises(InvalidTransition) as exc_info:
        check_transition(TaskStatus.TODO, TaskStatus.DONE)
    assert exc_info.value.message == "Invalid status transition: TODO -> DONE"
    assert exc_info.value.current == TaskStatus.TODO
    assert exc_info.value.requested == TaskStatus.DONE


def test_review_can_go_back_to_in_progress():
    assert TaskStatus.IN_REVIEW.can_transition_to(TaskStatus.IN_PROGRESS)
    assert not TaskStatus.IN_REVIEW.can_transition_to(TaskStatus.DONE)


def test_display_names():
    assert TaskStatus.IN_PROGRESS.display_name == "In Progress"
    assert Priority.URGENT.display_name == "Urgent"


def test_priority_order_is_ranked():
    assert Priority.LOW < Priority.MEDIUM < Priority.HIGH < Priority.URGENT
    assert max(Priority) == Priority.URGENT


def test_sort_by_priority():
    tasks = [Task(title=p.name, priority=p) for p in (Priority.MEDIUM, Priority.URGENT, Priority.LOW, Priority.HIGH)]
    assert [t.priority for t in sort_by_priority(tasks)] == [
        Priority.URGENT, Priority.HIGH, Priority.MEDIUM, Priority.LOW,
    ]
    assert sort_by_priority(tasks, descending=False)[0].priority == Priority.LOW


def test_overdue_and_progress_flags(yesterday, next_week):
    assert Task(title="t", status=TaskStatus.TODO, due_date=yesterday).is_overdue
    assert not Task(title="t", status=TaskStatus.DONE, due_date=yesterday).is_overdue
    # Cancelled work past its due date is still reported overdue
    assert Task(title="t", status=TaskStatus.CANCELLED, due_date=yesterday).is_overdue
    assert not Task(title="t", status=TaskStatus.TODO, due_date=next_week).is_overdue
    assert not Task(title="t", status=TaskStatus.TODO).is_overdue

    assert Task(title="t", status=TaskStatus.TESTING).is_in_progress
    assert not Task(title="t", status=TaskStatus.TODO).is_in_progress
    assert Task(title="t", status=TaskStatus.DONE).is_completed
