"""FastAPI application entry point."""

from ddtrace import patch_all
from fastapi import FastAPI

from routes.calls import router as calls_router
from routes.live import router as live_router
from routes.media_stream import router as media_stream_router
from routes.training import router as training_router
from routes.webhooks import router as webhooks_router

patch_all()

app = FastAPI(title="Lead Capture Call Pipeline")
app.include_router(webhooks_router)
app.include_router(calls_router)
app.include_router(media_stream_router)
app.include_router(live_router)
app.include_router(training_router)


@app.get("/health")
def health():
    return {"status": "ok"}
