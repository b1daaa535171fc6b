from __future__ import annotations

import os
from pathlib import Path

from fastapi import FastAPI

from sitearchive.api.routes import router

CHECKPOINT_PATH_ENV = "SITEARCHIVE_CHECKPOINT_PATH"
DEFAULT_CHECKPOINT_FILENAME = "sites.json"


def create_app(checkpoint_path: Path | str | None = None) -> FastAPI:
    if checkpoint_path is None:
        checkpoint_path = os.environ.get(CHECKPOINT_PATH_ENV, DEFAULT_CHECKPOINT_FILENAME)

    app = FastAPI(title="Site Archive", description="Read-only view of archive progress")
    app.state.checkpoint_path = Path(checkpoint_path)
    app.include_router(router, prefix="/api")
    return app


app = create_app()
