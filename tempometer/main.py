"""FastAPI application - serves the tempo detection API."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tempometer.api.upload import router as upload_router
from tempometer.api.websocket import router as ws_router

app = FastAPI(title="Tempometer", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(upload_router, prefix="/api")
app.include_router(ws_router, prefix="/api")


@app.get("/api/health")
async def health():
    return {"status": "ok"}


def run():
    import uvicorn
    from tempometer.config import settings
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "tempometer.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
    )
