from __future__ import annotations

import os
from typing import Iterable

from fastapi import FastAPI

from gcp_adapter import (
    finalize_service,
    query_service,
    upload_service,
    worker_service,
)
from streamshare_core.logging import configure_logging, get_logger
from streamshare_core.services.fastapi_scaffolding import (
    HealthResponse,
    add_correlation_id_middleware,
    apply_cors_middleware,
    build_health_response,
)

SERVICE_NAME = "streamshare-monolith"

configure_logging(
    service=SERVICE_NAME,
    env=os.getenv("ENV"),
    version=os.getenv("STREAMSHARE_VERSION"),
)
logger = get_logger(__name__)


def _attach_routes(
    app: FastAPI,
    source_app: FastAPI,
    *,
    drop_paths: Iterable[str] = ("/health",),
) -> None:
    drop = set(drop_paths)
    for route in source_app.router.routes:
        path = getattr(route, "path", None)
        if path in drop:
            continue
        app.router.routes.append(route)


app = FastAPI()
apply_cors_middleware(app)
add_correlation_id_middleware(app)

_attach_routes(app, upload_service.app)
_attach_routes(app, finalize_service.app)
_attach_routes(app, worker_service.app)
_attach_routes(app, query_service.app)


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return build_health_response(SERVICE_NAME)
