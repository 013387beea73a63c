#Description: Always-200 HTTP responder so free hosting plans and keep-alive pingers see the process as alive.
from threading import Thread

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from utils.config import settings
from utils.logging import logger

app = FastAPI(title="Binance DCA Bot", docs_url=None, redoc_url=None)


@app.get("/", response_class=PlainTextResponse)
def root():
    return "Hello, Traders!"


@app.get("/health")
def health():
    return {"status": "ok"}


def start_health_server(port: int | None = None) -> Thread:
    port = port or settings.PORT
    server = uvicorn.Server(uvicorn.Config(app, host="0.0.0.0", port=port, log_level="warning"))
    thread = Thread(target=server.run, name="health-server", daemon=True)
    thread.start()
    logger.info(f"Liveness endpoint listening on :{port}")
    return thread
