"""
Bootstrap an administrator account.

Self-registration over HTTP always creates DEVELOPER accounts, so the first
admin has to be created here:

    python -m taskflow.scripts.create_admin admin admin@taskflow.io secret123
"""
import argparse
import asyncio

from taskflow.database import AsyncSessionLocal, init_models
from taskflow.exceptions import TaskFlowError
from taskflow.models.enums import Role
from taskflow.models import user, project, tasks, comment  # noqa: F401
from taskflow.schemas.user import UserCreate
from taskflow.services import users as user_service
from taskflow.storage import Storage


async def create_admin(username: str, email: str, password: str, first_name: str, last_name: str):
    await init_models()
    async with AsyncSessionLocal() as db:
        store = Storage(db)
        admin = await user_service.register_user(store, UserCreate(
            username=username,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=Role.ADMIN,
        ))
        print(f"Created admin '{admin.username}' with ID: {admin.id}")
        return admin


def main():
    parser = argparse.ArgumentParser(description="Create a TaskFlow administrator")
    parser.add_argument("username")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--first-name", default="System")
    parser.add_argument("--last-name", default="Administrator")
    args = parser.parse_args()

    try:
        asyncio.run(create_admin(args.username, args.email, args.password, args.first_name, args.last_name))
    except TaskFlowError as e:
        print(f"Error: {e.message}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
