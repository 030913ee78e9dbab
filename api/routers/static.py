# WORKFLOW: Static file endpoints for product documents, indexes and catalogs.
# Used by: Frontends and clients consuming the generated static tree
# Endpoints:
# 1. / - Banner listing the served prefixes
# 2. /{file_path} - GET a file under the static root
#
# Request flow: Path -> Resolve under static root -> Checks (404/400/405/500) -> File bytes
# Content headers follow the file extension: .jsonl.gz (gzip), .jsonl.br (brotli NDJSON),
# everything else plain JSON.

import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Tuple

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

CORS_HEADERS = {"access-control-allow-origin": "*"}


class StaticStore:
    """Maps request paths to files under a static root and tracks bandwidth."""

    def __init__(self, static_dir: str):
        self.static_dir = Path(static_dir).resolve()
        self._lock = threading.Lock()
        self.bandwidth: Dict[str, Tuple[int, int]] = {}

    def resolve(self, request_path: str) -> Optional[Path]:
        """File path for ``request_path``, or None if it escapes the root."""
        candidate = (self.static_dir / request_path.lstrip("/")).resolve()
        if candidate != self.static_dir and self.static_dir not in candidate.parents:
            return None
        return candidate

    @staticmethod
    def content_type(path: Path) -> str:
        name = path.name
        if name.endswith(".jsonl.gz"):
            return "application/gzip"
        if name.endswith(".jsonl.br"):
            return "application/x-ndjson"
        return "application/json"

    @staticmethod
    def content_encoding(path: Path) -> Optional[str]:
        if path.suffix == ".gz":
            return "gzip"
        if path.suffix == ".br":
            return "br"
        return None

    def log_bandwidth(self, name: str, size: int) -> None:
        with self._lock:
            total, requests = self.bandwidth.get(name, (0, 0))
            self.bandwidth[name] = (total + size, requests + 1)
            requests += 1
        logger.info(f"Bandwidth: {name} - {size} bytes ({requests} requests total)")


_store: Optional[StaticStore] = None


def get_store() -> StaticStore:
    """Shared store for the configured static root (lazy-loaded)."""
    global _store
    if _store is None:
        _store = StaticStore(settings.static_dir)
    return _store


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=CORS_HEADERS)


@router.get("/")
def root():
    return JSONResponse(
        content={"message": settings.project_name, "endpoints": ["/products/*", "/indexes/*"]},
        headers=CORS_HEADERS,
    )


@router.api_route(
    "/{file_path:path}",
    methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
)
def serve_file(file_path: str, request: Request, store: StaticStore = Depends(get_store)):
    """
    Serve one file from the static root.

    Returns:
        File bytes with extension-derived headers, or a JSON error
    """
    if request.method == "OPTIONS":
        return Response(
            status_code=200,
            headers={
                **CORS_HEADERS,
                "access-control-allow-methods": "GET, OPTIONS",
                "access-control-allow-headers": "*",
            },
        )
    if request.method != "GET":
        return _error(405, "Method not allowed")

    path = store.resolve(file_path)
    if path is None or not path.exists():
        logger.warning(f"File not found: {file_path}")
        return _error(404, "File not found")
    if path.is_dir():
        logger.warning(f"Path is directory: {file_path}")
        return _error(400, "Path is a directory")

    try:
        contents = path.read_bytes()
    except OSError as e:
        logger.error(f"Error reading file {path}: {e}")
        return _error(500, "Internal server error")

    store.log_bandwidth(path.name, len(contents))

    headers = {**CORS_HEADERS, "vary": "Accept-Encoding"}
    encoding = store.content_encoding(path)
    if encoding:
        headers["content-encoding"] = encoding
    return Response(content=contents, media_type=store.content_type(path), headers=headers)
