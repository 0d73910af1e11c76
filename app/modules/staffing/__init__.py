# -*- coding: utf-8 -*-
"""
app/modules/staffing/__init__.py

Staffing: organizaciones, usuarios, contactos, jobs y plantillas.

Autor: HeyTeam
Fecha: 2026-02-10
"""

from .models import Contact, Job, Organization, Template, User
from .repositories import (
    ContactRepository,
    JobRepository,
    OrganizationRepository,
    TemplateRepository,
    UserRepository,
)

__all__ = [
    # Models
    "Organization",
    "User",
    "Contact",
    "Job",
    "Template",
    # Repositories
    "OrganizationRepository",
    "UserRepository",
    "ContactRepository",
    "JobRepository",
    "TemplateRepository",
]
