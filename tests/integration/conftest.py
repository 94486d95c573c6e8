"""API test fixtures: a throwaway SQLite database and httpx clients."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import date
from typing import Any
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from hr_system.api.app import create_app
from hr_system.api.dependencies import get_current_user, get_db_session
from hr_system.auth.permissions import AuthUser
from hr_system.models import Base
from hr_system.models.enums import UserRole

ADMIN = AuthUser(
    id=UUID("00000000-0000-0000-0000-000000000001"),
    email="admin@example.com",
    name="Admin",
    role=UserRole.ADMIN.value,
)


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """File-backed SQLite so every request gets its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'hr_test.db'}", echo=False)

    # Let SQLAlchemy own BEGIN so savepoints behave.
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def app(session_factory):
    """Application wired to the test database."""
    app = create_app()

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    return app


def _client(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest_asyncio.fixture
async def anon_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Client without any identity; real token checks apply."""
    async with _client(app) as client:
        yield client


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Client authenticated as an admin."""
    app.dependency_overrides[get_current_user] = lambda: ADMIN
    async with _client(app) as client:
        yield client
    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture
def as_user(app):
    """Switch the identity of ``client`` to a non-admin with ``permissions``."""

    def switch(*permissions: str) -> AuthUser:
        user = AuthUser(
            id=uuid4(),
            email="staff@example.com",
            name="Staff",
            role=UserRole.EMPLOYEE.value,
            permissions=list(permissions),
        )
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    return switch


class Factory:
    """Creates records through the API and returns their JSON ``data``."""

    def __init__(self, client: AsyncClient):
        self.client = client

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self.client.post(path, json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    async def institution(self, **fields: Any) -> dict[str, Any]:
        return await self._post("/api/institutions", {"name": "Al Noor Trading", **fields})

    async def branch(self, **fields: Any) -> dict[str, Any]:
        return await self._post("/api/branches", {"name": "Riyadh Branch", **fields})

    async def employee(self, **fields: Any) -> dict[str, Any]:
        return await self._post(
            "/api/employees", {"name": "Ahmed Ali", "salary": "5000.00", **fields}
        )

    async def advance(self, employee_id: str, **fields: Any) -> dict[str, Any]:
        return await self._post(
            "/api/advances",
            {"employeeId": employee_id, "amount": "500.00", "installments": 2, **fields},
        )

    async def approved_advance(self, employee_id: str, **fields: Any) -> dict[str, Any]:
        advance = await self.advance(employee_id, **fields)
        response = await self.client.post(f"/api/advances/{advance['id']}/approve", json={})
        assert response.status_code == 200, response.text
        return response.json()["data"]

    async def compensation(self, employee_id: str, **fields: Any) -> dict[str, Any]:
        return await self._post(
            "/api/compensations",
            {
                "employeeId": employee_id,
                "type": "reward",
                "amount": "300.00",
                "reason": "Overtime",
                "date": date.today().isoformat(),
                **fields,
            },
        )


@pytest.fixture
def factory(client) -> Factory:
    return Factory(client)
