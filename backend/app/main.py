import logging
from typing import Dict

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from . import credit_routes, feedback_routes, plan_routes
from .config import Settings, get_settings
from .db.session import get_engine
from .logging_config import configure_logging


configure_logging()
logger = logging.getLogger(__name__)
app = FastAPI(title="LearnPath Planner Backend", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)
app.include_router(plan_routes.router)
app.include_router(plan_routes.progress_router)
app.include_router(credit_routes.router)
app.include_router(feedback_routes.router)
app.add_exception_handler(RequestValidationError, plan_routes.validation_error_handler)

settings_snapshot = get_settings()
logger.info("Backend starting with model: %s", settings_snapshot.llm_model)
logger.info("LLM API key configured: %s", bool(settings_snapshot.llm_api_key))


@app.get("/healthz")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, str]:
    return {"status": "ok", "model": settings.llm_model}


@app.get("/healthz/database")
def database_health() -> Dict[str, str]:
    try:
        engine = get_engine()
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return {"status": "ok", "dialect": engine.dialect.name}


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_level="info",
    )
