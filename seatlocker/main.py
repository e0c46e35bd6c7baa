import yaml
from fastapi import FastAPI

from seatlocker.infrastructure.config import settings
from seatlocker.infrastructure.logging_config import setup_logging
from seatlocker.presentation.routers import router
from seatlocker.services.seat_locker_service import build_services

app = FastAPI(title="seatlocker")


# Use the contractual schema
def custom_openapi():
    with open(settings.openapi_path) as f:
        return yaml.safe_load(f)


@app.on_event("startup")
async def _build_services_on_startup() -> None:
    """
    Configure logging and wire the process-wide store, session, notification
    queue and assignment workflow. The stored assignment is read lazily, so a
    restart picks up whatever the previous process persisted.
    """
    setup_logging(settings.log_level)
    app.state.services = build_services(settings)


@app.on_event("shutdown")
async def _close_services_on_shutdown() -> None:
    services = getattr(app.state, "services", None)
    if services is not None:
        await services.aclose()


app.openapi = custom_openapi
app.include_router(router)
