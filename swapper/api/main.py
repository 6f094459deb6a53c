"""FastAPI application for swap quotes.

Note: Rate limiting is intentionally not implemented at the application level.
It should be handled at the infrastructure layer (reverse proxy / load balancer).
"""

import os

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from swapper import __version__
from swapper.api.endpoints import router
from swapper.logging import configure_logging

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("SWAPPER_HOST", "0.0.0.0")
PORT = int(os.environ.get("SWAPPER_PORT", "8000"))
DEBUG = os.environ.get("SWAPPER_DEBUG", "false").lower() in ("true", "1", "yes")

# Maximum request body size (64 KB); quote requests are tiny
MAX_REQUEST_SIZE = 64 * 1024

app = FastAPI(
    title="Swapper",
    description="Best-path quoting for UniswapV2-style constant-product pools",
    version=__version__,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


def run() -> None:
    """Run the quote API server.

    Configuration via environment variables:
    - SWAPPER_HOST: Host to bind to (default: 0.0.0.0)
    - SWAPPER_PORT: Port to bind to (default: 8000)
    - SWAPPER_DEBUG: Enable debug logging and reload mode (default: false)
    - SWAPPER_RPC_URL, SWAPPER_FACTORY, SWAPPER_ASSET_LIST: see swapper.engine
    """
    configure_logging(debug=DEBUG)
    uvicorn.run(
        "swapper.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
