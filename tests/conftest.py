# tests/conftest.py
# -*- coding: utf-8 -*-
"""
Config global de tests para HeyTeam.

- PYTHON_ENV=test antes de importar la app
- SQLite (aiosqlite) en archivo temporal por test: cada sesión abre su propia
  conexión, igual que en producción
- Fixtures de datos base: organización, usuario, contacto, job y plantilla
"""

import os

os.environ.setdefault("PYTHON_ENV", "test")

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from app.modules.staffing.models import Contact, Job, Organization, Template, User
from app.shared.config.settings_testing import EnvTestingSettings
from app.shared.database import build_session_factory, init_models


@pytest.fixture
def settings():
    return EnvTestingSettings()


@pytest_asyncio.fixture
async def engine(tmp_path):
    db_path = tmp_path / "heyteam_test.db"
    eng = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    await init_models(eng)
    try:
        yield eng
    finally:
        await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


async def persist(session_factory, *objects):
    """Guarda objetos ORM en una sesión propia y hace commit."""
    async with session_factory() as session:
        session.add_all(objects)
        await session.commit()
    return objects


@pytest_asyncio.fixture
async def org(session_factory):
    organization = Organization(id="org-1", name="Acme Events")
    await persist(session_factory, organization)
    return organization


@pytest_asyncio.fixture
async def user(session_factory, org):
    owner = User(id="user-1", organization_id=org.id, email="owner@acme.test", first_name="Olga")
    await persist(session_factory, owner)
    return owner


@pytest_asyncio.fixture
async def job(session_factory, org):
    shift = Job(
        id="job-1",
        organization_id=org.id,
        name="Gala Dinner",
        location="Main Hall",
        start_time=datetime(2026, 3, 5, 15, 30, tzinfo=timezone.utc),
        end_time=datetime(2026, 3, 5, 23, 0, tzinfo=timezone.utc),
        notes="Black tie",
    )
    await persist(session_factory, shift)
    return shift


@pytest_asyncio.fixture
async def template(session_factory, org):
    tpl = Template(
        id="tpl-1",
        organization_id=org.id,
        name="Invite",
        content="Hi {{firstName}}, can you work {{jobName}} on {{jobDate}} at {{jobTime}}?",
    )
    await persist(session_factory, tpl)
    return tpl


def make_contact(contact_id: str, organization_id: str = "org-1", **overrides) -> Contact:
    values = dict(
        id=contact_id,
        organization_id=organization_id,
        first_name="Sam",
        last_name="Rivera",
        country_code="US",
        phone="(415) 555-0100",
        is_opted_out=False,
        has_login=False,
    )
    values.update(overrides)
    return Contact(**values)
