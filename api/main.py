"""
Punto de entrada del backend de jobs.

Expone el receptor del sync de la planilla (/api/sync/*) y /health.
El agente periódico y el scheduler se crean en el lifespan (app.core.events).
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings, get_cors_origins
from app.core.events import lifespan
from app.api.v1.router import api_router
from app.api.middlewares.error_handler import ErrorHandlerMiddleware
from app.shared.exceptions.base import AppException


def _register_middlewares(application: FastAPI) -> None:
    application.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(settings.CORS_ORIGINS),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Último en agregarse = primero en ejecutarse: envuelve todo lo demás
    application.add_middleware(ErrorHandlerMiddleware)


def _register_exception_handlers(application: FastAPI) -> None:
    @application.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def _register_routes(application: FastAPI) -> None:
    application.include_router(api_router, prefix="/api")

    @application.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Estado del servicio y del agente de sync en proceso."""
        agent = request.app.state.sync_agent
        return {
            "status": "healthy",
            "app_name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "sync_agent": agent is not None,
            "sync_scheduler": request.app.state.scheduler is not None,
        }


def create_application() -> FastAPI:
    """
    Factory de la aplicación FastAPI.

    Returns:
        FastAPI: app con middlewares, handlers y rutas registrados
    """
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Backend del panel de jobs: sincronizacion de la planilla Excel",
        lifespan=lifespan,
    )

    # Valores por defecto; el lifespan los reemplaza si hay planilla configurada
    application.state.sync_agent = None
    application.state.scheduler = None

    _register_middlewares(application)
    _register_exception_handlers(application)
    _register_routes(application)
    return application


app = create_application()


if __name__ == "__main__":
    import uvicorn
    from loguru import logger

    access_host = "localhost" if settings.HOST == "0.0.0.0" else settings.HOST
    base_url = f"http://{access_host}:{settings.PORT}"
    logger.info(f"Docs: {base_url}/docs | Health: {base_url}/health | Sync: {base_url}/api/sync/jobs")

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG or settings.is_development,
        log_level=settings.LOG_LEVEL.lower(),
    )
