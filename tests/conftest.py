from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from taskflow.database import Base, get_db
from taskflow.main import app
from taskflow.models.comment import Comment
from taskflow.models.enums import Role, TaskStatus, Priority
from taskflow.models.project import Project
from taskflow.models.tasks import Task
from taskflow.schemas.user import UserCreate
from taskflow.services import users as user_service
from taskflow.storage import Storage
from taskflow.utils.clock import utcnow
from taskflow.utils.security import PasswordHasher, create_access_token

# Few rounds keep registration fast; verify() reads the rounds from the hash
fast_hasher = PasswordHasher(CryptContext(schemes=["pbkdf2_sha256"], pbkdf2_sha256__default_rounds=1000))

PASSWORD = "secret123"


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def store(session_factory):
    async with session_factory() as db:
        yield Storage(db)


# Factories write through their own session and hand back detached objects,
# so a rollback in the ``store`` session under test never expires them.

@pytest.fixture
def make_user(session_factory):
    async def _make(username, role=Role.DEVELOPER, is_active=True):
        async with session_factory() as db:
            return await user_service.register_user(Storage(db), UserCreate(
                username=username,
                email=f"{username}@taskflow.io",
                password=PASSWORD,
                first_name=username.title(),
                last_name="Tester",
                role=role,
                is_active=is_active,
            ), hasher=fast_hasher)
    return _make


@pytest.fixture
def make_project(session_factory):
    async def _make(owner, name="Apollo", is_active=True, description=None):
        async with session_factory() as db:
            store = Storage(db)
            async with store.transaction():
                project = await store.save(Project(
                    name=name, description=description, owner_id=owner.id, is_active=is_active,
                ))
            return project
    return _make


@pytest.fixture
def make_task(session_factory):
    async def _make(project, title="Write docs", status=TaskStatus.TODO, priority=Priority.MEDIUM,
                    assignee=None, due_date=None):
        async with session_factory() as db:
            store = Storage(db)
            async with store.transaction():
                task = await store.save(Task(
                    title=title,
                    status=status,
                    priority=priority,
                    project_id=project.id,
                    assignee_id=assignee.id if assignee else None,
                    due_date=due_date,
                ))
            return task
    return _make


@pytest.fixture
def make_comment(session_factory):
    async def _make(task, author, content="Looks good"):
        async with session_factory() as db:
            store = Storage(db)
            async with store.transaction():
                comment = await store.save(Comment(content=content, task_id=task.id, author_id=author.id))
            return comment
    return _make


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user("root", role=Role.ADMIN)


@pytest_asyncio.fixture
async def alice(make_user):
    return await make_user("alice", role=Role.PROJECT_MANAGER)


@pytest_asyncio.fixture
async def bob(make_user):
    return await make_user("bob")


@pytest.fixture
def yesterday():
    return utcnow() - timedelta(days=1)


@pytest.fixture
def next_week():
    return utcnow() + timedelta(days=7)


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as db:
            yield db

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user) -> dict:
        token = create_access_token({"sub": user.username})
        return {"Authorization": f"Bearer {token}"}
    return _headers
