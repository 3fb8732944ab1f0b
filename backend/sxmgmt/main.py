import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from sxmgmt.api import audit, auth, customers, manifest, portal, projects, reports, services, staff, tickets
from sxmgmt.core.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

API_PREFIX = "/api/v1"

app = FastAPI(
    title=f"{settings.PROJECT_NAME} API",
    description="Client registry, project pipeline, support desk and staff administration",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
for module in (auth, customers, staff, services, projects, tickets, portal, manifest, audit, reports):
    app.include_router(module.router, prefix=API_PREFIX)

# Serve uploaded attachments
uploads_dir = Path(settings.UPLOAD_DIR)
uploads_dir.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=uploads_dir), name="uploads")


@app.get("/health")
async def health_check():
    return {"status": "ok", "version": "0.1.0"}
