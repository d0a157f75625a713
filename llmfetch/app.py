from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .dependencies import lifespan, settings
from .routes import jobs, system

logger = logging.getLogger(__name__)

app = FastAPI(title="LLMFetch", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(system.router)
app.include_router(jobs.router)


def main() -> None:
    import uvicorn

    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    logger.info("Server running on http://localhost:%s", settings.port)
    uvicorn.run("llmfetch.app:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
