from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

# --- ADMIN ROUTES ---
from app.api.v1.admin import institute as admin_institute

# ===== IMPORT ROUTERS =====
from app.api.v1 import auth
from app.api.v1.shares import courses, dashboard, enquiries, institutes, reviews

# --- USER ROUTES ---
from app.api.v1.user import profile as user_profile
from app.core.exceptions import register_exception_handlers
from app.core.settings import settings
from app.db.models.init_db import create_all
from app.db.session import engine, get_session
from app.libs.formats.datetime import now_tzinfo

# --- MIDDLEWARE ---
from app.middleware.request_context import RequestContextMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):

    # ================================
    # 1) DATABASE SCHEMA
    # ================================
    if settings.AUTO_CREATE_TABLES:
        await create_all(engine)
    logger.info("🚀 EduList API started")

    try:
        yield
    finally:
        # ================================
        # 2) CLOSE CONNECTION POOL
        # ================================
        await engine.dispose()
        logger.info("🛑 Database engine disposed")


# ===== APP CONFIG =====
app = FastAPI(
    title="EduList API",
    description="Directory of educational institutes: courses, enquiries, reviews and dashboards",
    version="1.0.0",
    lifespan=lifespan,
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestContextMiddleware)
register_exception_handlers(app)
prefix = "/api"

# ===== REGISTER ROUTERS =====

# --- Share ---
app.include_router(auth.router, prefix=prefix)
app.include_router(institutes.router, prefix=prefix)
app.include_router(courses.router, prefix=prefix)
app.include_router(enquiries.router, prefix=prefix)
app.include_router(reviews.router, prefix=prefix)
app.include_router(dashboard.router, prefix=prefix)

# --- USER ROUTES ---
app.include_router(user_profile.router, prefix=prefix)

# --- ADMIN ROUTES ---
app.include_router(admin_institute.router, prefix=prefix)


# ===== HEALTH =====
@app.get(f"{prefix}/health")
async def health(db: AsyncSession = Depends(get_session)):
    try:
        await db.execute(text("SELECT 1"))
        database = "connected"
    except Exception as e:
        logger.error(f"❌ Database health check failed: {e}")
        database = "unavailable"
    return {
        "success": True,
        "message": "EduList API is running",
        "database": database,
        "timestamp": now_tzinfo().isoformat(),
    }


# ===== ROOT =====
@app.get("/")
async def root():
    return {"success": True, "message": "Welcome to the EduList API"}


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
