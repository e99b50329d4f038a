from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import time

from .core.config import settings
from .core.database import close_db_connections
from .core.cache import cache
from .core.error_handlers import register_exception_handlers

# Import all routers
from .routers import (
    health, auth, classes, teacher_assignment, students, guardians,
    guardian_students, staff, principals, announcements, events, dashboard
)
from .routers.chat import messages_router, message_items_router, participants_router, websocket_router

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting SchoolHub API ({settings.environment})")

    await cache.connect()
    logger.info("Cache initialized" if cache.enabled else "Cache disabled")

    yield

    logger.info("Shutting down SchoolHub API")
    await cache.disconnect()
    await close_db_connections()
    logger.info("Shutdown complete")

app = FastAPI(
    title="SchoolHub API",
    description="Multi-tenant school administration and messaging backend",
    version=settings.app_version,
    lifespan=lifespan
)

@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    logger.info(f"{request.method} {request.url.path} {response.status_code} - {process_time:.3f}s")
    return response

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)

register_exception_handlers(app)

# Include all routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(classes.router)
app.include_router(teacher_assignment.router)
app.include_router(students.router)
app.include_router(guardians.router)
app.include_router(guardian_students.router)
app.include_router(staff.router)
app.include_router(principals.router)
app.include_router(announcements.router)
app.include_router(events.router)
app.include_router(dashboard.router)
app.include_router(messages_router.router)
app.include_router(message_items_router.router)
app.include_router(participants_router.router)
app.include_router(websocket_router.router)

@app.get("/")
async def root():
    return {
        "message": "SchoolHub API",
        "version": settings.app_version,
        "features": ["Multi-tenant", "Role-based access", "Messaging", "Real-time updates", "Redis Caching"],
        "status": "active"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
