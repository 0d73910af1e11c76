# -*- coding: utf-8 -*-
"""
app/__init__.py

Paquete principal del backend HeyTeam.

Subpaquetes:
- app.shared: infraestructura (config, database, scheduler, integraciones)
- app.modules: dominio (staffing, billing.credits, messaging)
"""
# Fin del archivo app/__init__.py
