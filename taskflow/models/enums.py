import enum
from functools import total_ordering


class Role(enum.Enum):
    ADMIN = "ADMIN"
    PROJECT_MANAGER = "PROJECT_MANAGER"
    DEVELOPER = "DEVELOPER"
    TESTER = "TESTER"

    @property
    def display_name(self) -> str:
        return _ROLE_NAMES[self]


_ROLE_NAMES = {
    Role.ADMIN: "System Administrator",
    Role.PROJECT_MANAGER: "Project Manager",
    Role.DEVELOPER: "Developer",
    Role.TESTER: "Tester",
}


class TaskStatus(enum.Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    IN_REVIEW = "IN_REVIEW"
    TESTING = "TESTING"
    DONE = "DONE"
    CANCELLED = "CANCELLED"

    @property
    def display_name(self) -> str:
        return self.name.replace("_", " ").title()

    def can_transition_to(self, new_status: "TaskStatus") -> bool:
        return new_status in TRANSITIONS[self]

    @property
    def is_terminal(self) -> bool:
        return not TRANSITIONS[self]


# Directed edges of the task workflow; DONE and CANCELLED have none.
TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.TODO: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.IN_REVIEW, TaskStatus.TODO, TaskStatus.CANCELLED}),
    TaskStatus.IN_REVIEW: frozenset({TaskStatus.TESTING, TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED}),
    TaskStatus.TESTING: frozenset({TaskStatus.DONE, TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED}),
    TaskStatus.DONE: frozenset(),
    TaskStatus.CANCELLED: frozenset(),
}

IN_PROGRESS_STATUSES = frozenset({TaskStatus.IN_PROGRESS, TaskStatus.IN_REVIEW, TaskStatus.TESTING})


@total_ordering
class Priority(enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"

    @property
    def rank(self) -> int:
        return PRIORITY_RANKING.index(self)

    @property
    def display_name(self) -> str:
        return self.name.title()

    def __lt__(self, other):
        if not isinstance(other, Priority):
            return NotImplemented
        return self.rank < other.rank


# Lowest first. Ordering comes from this list, never from declaration order.
PRIORITY_RANKING = [Priority.LOW, Priority.MEDIUM, Priority.HIGH, Priority.URGENT]
