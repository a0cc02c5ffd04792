import logging

from .common import app
from .routers.notifications.endpoints import router as NotificationEndpoints
from .routers.events.endpoints import router as EventEndpoints

logger = logging.getLogger(__name__)

# Include routers
app.include_router(NotificationEndpoints)
app.include_router(EventEndpoints)

@app.get("/health")
async def health_check():
    return {"status": "ok"}
