# -*- coding: utf-8 -*-
"""
app/modules/staffing/repositories.py

Repositorios de lectura para staffing.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Contact, Job, Organization, Template, User


class OrganizationRepository:
    """Repositorio de organizaciones."""

    async def get_by_id(self, session: AsyncSession, organization_id: str) -> Optional[Organization]:
        return await session.get(Organization, organization_id)


class UserRepository:
    """Repositorio de usuarios del equipo."""

    async def get_by_id(self, session: AsyncSession, user_id: str) -> Optional[User]:
        return await session.get(User, user_id)

    async def get_organization_id(self, session: AsyncSession, user_id: str) -> Optional[str]:
        """
        Organización a la que pertenece el usuario.

        Returns:
            ID de la organización, o None si el usuario no existe o no tiene
        """
        result = await session.execute(
            select(User.organization_id).where(User.id == user_id)
        )
        return result.scalar_one_or_none()


class ContactRepository:
    """Repositorio de contactos."""

    async def get_by_id(self, session: AsyncSession, contact_id: str) -> Optional[Contact]:
        return await session.get(Contact, contact_id)


class JobRepository:
    """Repositorio de jobs."""

    async def get_by_id(self, session: AsyncSession, job_id: str) -> Optional[Job]:
        return await session.get(Job, job_id)


class TemplateRepository:
    """Repositorio de plantillas."""

    async def get_by_id(self, session: AsyncSession, template_id: str) -> Optional[Template]:
        return await session.get(Template, template_id)


__all__ = [
    "OrganizationRepository",
    "UserRepository",
    "ContactRepository",
    "JobRepository",
    "TemplateRepository",
]
