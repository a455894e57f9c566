"""
API Routes
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)

Modulo per l'aggregazione dei router versionati.
"""

from repairdesk.api.v1 import api_v1_router

# Esportazione router
__all__ = ["api_v1_router"]
