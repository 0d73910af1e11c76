# -*- coding: utf-8 -*-
"""
app/shared/__init__.py

Infraestructura compartida por los módulos de HeyTeam:
configuración, base de datos, scheduler, integraciones y utilidades.

No inicializa settings en import-time para evitar efectos colaterales
durante la recolección de tests.
"""
# Fin del archivo
