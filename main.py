import argparse
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from config import load_config
from db.database import init_db
from routes import cards_router, review_router, stats_router
from routes.review import shutdown_sessions


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# First-run init
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: init DB and config
    config = load_config()  # Ensures config exists
    configure_logging(config["logging"]["level"])
    init_db()
    yield
    # Shutdown: let queued card writes finish
    shutdown_sessions()


app = FastAPI(
    title="wordcoach",
    description="Spaced-repetition scheduling for vocabulary marked while studying",
    lifespan=lifespan,
)

app.include_router(cards_router, prefix="/learners", tags=["cards"])
app.include_router(review_router, prefix="/learners", tags=["review"])
app.include_router(stats_router, prefix="/learners", tags=["stats"])


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="wordcoach API")
    parser.add_argument("--init", action="store_true", help="Initialize DB and config")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with reload")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    args = parser.parse_args()
    config = load_config()
    configure_logging(config["logging"]["level"])
    if args.init:
        init_db()
        print("DB initialized and config copied to ~/.wordcoach/")
        raise SystemExit(0)
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=args.port,
        reload=args.dev,
        log_level=config["logging"]["level"].lower(),
    )
