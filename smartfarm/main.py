# smartfarm/main.py - Smart farm API server (FastAPI + async SQLAlchemy)
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from smartfarm.core.config import CORS_ORIGINS, LOG_LEVEL
from smartfarm.core.database import async_session_maker
from smartfarm.core.errors import AssistantNotConfigured
from smartfarm.routers import (
    auth_router,
    auth_api_router,
    plant_batches_router,
    irrigation_router,
    dashboard_router,
    chat_router,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Smart Farm API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(auth_api_router)
app.include_router(plant_batches_router)
app.include_router(irrigation_router)
app.include_router(dashboard_router)
app.include_router(chat_router)


@app.exception_handler(AssistantNotConfigured)
async def assistant_not_configured_handler(request: Request, exc: AssistantNotConfigured):
    logger.error("Assistant request to %s without a language model: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": str(exc) or "OpenAI API key not configured"})


@app.get("/health")
async def health_check():
    """Database ping"""
    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Health check failed: %s", e)
        return JSONResponse(status_code=503, content={"status": "error", "database": "unavailable"})
    return {"status": "ok", "database": "connected"}


@app.on_event("startup")
async def on_startup():
    from smartfarm.init_database import init_database
    await init_database()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("smartfarm.main:app", host="0.0.0.0", port=8000)
