import sys
import time

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.config import settings
from app.routers import contact, messages

logger.remove()
logger.add(sys.stderr, level=settings.log_level)

app = FastAPI(
    title="Contact Form Relay",
    description="Relays website contact form submissions to a mailbox through the Gmail API",
    version="0.1.0",
)

# CORS: only the website hosting the form may POST to it
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.allowed_origin],
    allow_methods=["POST"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    client = request.client.host if request.client else "-"
    logger.info(
        '{} "{} {}" {} {:.1f}ms',
        client,
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


# Register routers
app.include_router(contact.router)
app.include_router(messages.router)


def serve() -> None:
    """Run the API with uvicorn on HOST:PORT (PORT defaults to 3000)."""
    logger.info("Your app is listening on port {}", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    serve()
