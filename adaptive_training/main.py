"""FastAPI application entry point."""
from fastapi import FastAPI

from adaptive_training.logging_config import configure_logging
from adaptive_training.routers import adaptation


configure_logging()

app = FastAPI(title="Adaptive Training Engine API")


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Simple health probe for liveness checks."""
    return {"status": "ok"}


# Include routers
app.include_router(adaptation.router)


if __name__ == "__main__":
    import uvicorn

    from adaptive_training.config import get_settings

    settings = get_settings()
    uvicorn.run(app, host=settings.app_host, port=settings.app_port, reload=False)
