"""Main FastAPI application module.

This module initializes the FastAPI application and registers all route handlers.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.database import init_db
from core.error_handlers import register_exception_handlers
from core.logging_config import setup_logging
from config import (
    CORS_ALLOWED_ORIGINS,
    API_HOST,
    API_PORT,
)
from api.routes import auth, community, notifications, quizzes, realtime, schedules, schools

# Setup logging
setup_logging()

# Initialize FastAPI application
app = FastAPI(
    title="Ecoterra API",
    description="Backend API service for the Ecoterra school and community learning platform.",
    version="1.0.0",
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Register route handlers
app.include_router(auth.router)
app.include_router(quizzes.router)
app.include_router(community.router)
app.include_router(schools.router)
app.include_router(schedules.router)
app.include_router(notifications.router)
app.include_router(realtime.router)


@app.on_event("startup")
def startup_tasks() -> None:
    """Create missing tables."""
    init_db()


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """API root, with the documentation links.

    Returns:
        Dictionary with API information and documentation links.
    """
    return {
        "name": "Ecoterra API",
        "version": "1.0.0",
        "description": "Backend API service for the Ecoterra school and community learning platform.",
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc",
        },
        "health": "/api/health",
    }


@app.get("/api/health", summary="Health check", tags=["Health"])
def health() -> dict:
    """Health check endpoint.

    Returns:
        Envelope with status "ok".
    """
    return {"success": True, "message": "Ecoterra API is running", "data": {"status": "ok"}}


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import uvicorn

    server_url = f"http://{API_HOST}:{API_PORT}"
    print(f"🚀 Starting Ecoterra API server at {server_url}")
    print(f"📚 API docs: {server_url}/docs")
    print()

    # reload=True enables auto-reload on code changes
    uvicorn.run("app:app", host=API_HOST, port=API_PORT, reload=True)
