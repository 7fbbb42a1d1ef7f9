import uvicorn
from fastapi import FastAPI

from governor.api.routes.health import router as health_router
from governor.api.routes.internal_admission import router as internal_admission_router
from governor.api.routes.internal_cdk import router as internal_cdk_router
from governor.api.routes.internal_points import router as internal_points_router
from governor.core.config import get_settings
from governor.core.logging import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level, json_logs=settings.app_env != "dev")

    app = FastAPI(
        title="Governor Resource Governance API",
        version="0.1.0",
        docs_url="/docs" if settings.app_env == "dev" else None,
        redoc_url=None,
    )
    app.include_router(health_router)
    app.include_router(internal_admission_router)
    app.include_router(internal_cdk_router)
    app.include_router(internal_points_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "governor.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
