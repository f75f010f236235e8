"""FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from packmatch import __version__
from packmatch.api import router as api_router

app = FastAPI(
    title="packmatch",
    description="Offline situational search over downloaded city packs",
    version=__version__,
)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "ok"}, status_code=200)


# Include v1 API router
app.include_router(api_router, prefix="/v1", tags=["v1"])
