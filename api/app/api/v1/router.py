"""
Router principal de la API.

Las rutas de sync van en /api/sync/* sin version: el agente de oficina
ya apunta a esas URLs.
"""
from fastapi import APIRouter

from app.api.v1.endpoints import sync


# Router principal de la API
api_router = APIRouter()

# Incluir routers de endpoints especificos
api_router.include_router(sync.router)
