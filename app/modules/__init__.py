# -*- coding: utf-8 -*-
"""
app/modules/__init__.py

Módulos de dominio de HeyTeam.
"""
