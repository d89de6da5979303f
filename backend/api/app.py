"""FastAPI application entrypoint."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.api.routes import dispositions
from backend.api.routes import spec_limits

app = FastAPI(title="Raw Material Inspection API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(spec_limits.router, prefix="/spec-limits", tags=["spec-limits"])
app.include_router(dispositions.router, prefix="/dispositions", tags=["dispositions"])


@app.get("/health", tags=["health"])
def healthcheck() -> dict[str, str]:
    """Simple health endpoint for uptime checks."""
    return {"status": "ok"}
