"""Main FastAPI application."""
from fastapi import FastAPI
from contextlib import asynccontextmanager

from app.core.logging import setup_logging
from app.db.database import engine, init_db
from app.api import auth, health, intakes
from app.api.webhooks import agent_line, voice


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    setup_logging()
    await init_db()
    yield
    await engine.dispose()


app = FastAPI(
    title="Voice Intake IVR",
    description="Twilio voice webhooks for call intake and a conversational agent line",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(voice.router, prefix="/webhooks", tags=["webhooks"])
app.include_router(agent_line.router, prefix="/webhooks", tags=["webhooks"])
app.include_router(auth.router, tags=["auth"])
app.include_router(intakes.router, tags=["intakes"])


@app.get("/")
async def root():
    return {"message": "Voice Intake IVR API", "version": "0.1.0"}
