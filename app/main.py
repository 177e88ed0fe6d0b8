from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import uvicorn
import logging

from app.storage.database import build_engine, build_session_factory, init_db
from app.storage.cloudinary import CloudinaryService
from app.settings import settings
from app.routers.image_service import router as image_router
from app.routers.auth import router as auth_router
from app.routers.user import router as user_router
from app.exceptions import add_exception_handlers

logging.basicConfig(level=settings.log_level)
log = logging.getLogger("image-metadata-service")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
        Async context manager for FastAPI application lifecycle events.
        Initializes and closes resources (database, Cloudinary) for the application.
    """
    # Initialize resources
    app.state.engine = build_engine()
    init_db(app.state.engine)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.gateway = CloudinaryService()
    yield
    # Cleanup resources
    app.state.gateway.close()
    app.state.engine.dispose()
    log.info("Disposed database engine")

# Initialize App
app = FastAPI(
    title=settings.app_title,
    lifespan=lifespan,
    description="Image upload and metadata search service",
    root_path=settings.root_path
)

# Add exception handlers
add_exception_handlers(app)

# CORS - Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=settings.cors_origin_regex,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
    allow_headers=["*"],
)

# Add the routers
app.include_router(user_router)
app.include_router(auth_router)
app.include_router(image_router)

# Check Health
@app.get("/")
def read_root():
    """
        Default end point

    """
    return "Image Metadata Service is running."

if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
