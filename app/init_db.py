from .database import AsyncSessionLocal

async def get_db():
    """Request-scoped session; closed once the response has been sent."""
    async with AsyncSessionLocal() as db:
        yield db
