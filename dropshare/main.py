"""
DropShare
- /upload, /files, /download/{name} : anonymous upload, listing and download
- /admin/* : listing with full metadata and deletion, gated by ADMIN_PASSWORD
- files live in UPLOAD_DIR under randomized names, metadata in one JSON file beside them
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dropshare.api.routes.admin import router as admin_router
from dropshare.api.routes.files import router as files_router
from dropshare.core.config import Settings, settings
from dropshare.core.logging import configure_logging
from dropshare.services.filestore import FileStore

logger = logging.getLogger(__name__)

def create_app(cfg: Optional[Settings] = None) -> FastAPI:
    cfg = cfg or settings
    configure_logging(cfg.LOG_DIR, cfg.LOG_LEVEL)
    if not cfg.ADMIN_PASSWORD:
        logger.warning("ADMIN_PASSWORD is not set; admin endpoints will reject every request")

    app = FastAPI(title="DropShare", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"], allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )

    app.state.settings = cfg
    app.state.store = FileStore(
        cfg.UPLOAD_DIR,
        blocked_extensions=cfg.BLOCKED_EXTENSIONS,
        metadata_filename=cfg.METADATA_FILENAME,
    )

    # APIs
    app.include_router(files_router, tags=["files"])
    app.include_router(admin_router, prefix="/admin", tags=["admin"])

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
