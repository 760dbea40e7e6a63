"""Shared builders for tests: settings, an in-memory database, users and projects."""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from formula_access.core.config import Settings
from formula_access.core.security import hash_password
from formula_access.models import Base, Project, ProjectTeamMember, User

TEST_PASSWORD = "Str0ng!Pass"


def make_settings(**overrides: object) -> Settings:
    """Settings with distinct test secrets, cheap bcrypt and no rate limiting."""
    values: dict[str, object] = {
        "DATABASE_URL": "sqlite://",
        "ACCESS_TOKEN_SECRET": "test-access-secret",
        "REFRESH_TOKEN_SECRET": "test-refresh-secret",
        "BCRYPT_ROUNDS": 4,
        "RATE_LIMIT_ENABLED": False,
    }
    values.update(overrides)
    return Settings(**values)


def make_session_factory() -> sessionmaker:
    """Fresh in-memory SQLite database shared by every session from the factory."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def make_user(
    db: Session,
    email: str = "user@example.com",
    role: str = "craftsman",
    status: str = "active",
    password: str = TEST_PASSWORD,
    first_name: str = "Test",
    last_name: str = "User",
) -> User:
    user = User(
        email=email,
        password_hash=hash_password(password, rounds=4),
        first_name=first_name,
        last_name=last_name,
        role=role,
        status=status,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_project(
    db: Session,
    manager_id: str | None = None,
    team_ids: tuple[str, ...] = (),
    client_id: str | None = None,
    name: str = "Test Project",
) -> Project:
    project = Project(name=name, project_manager_id=manager_id, client_id=client_id)
    project.team_members = [ProjectTeamMember(user_id=uid, role="member") for uid in team_ids]
    db.add(project)
    db.commit()
    db.refresh(project)
    return project
