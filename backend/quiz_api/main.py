import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .db.schema import init_db
from .engines.results import load_catalog
from .routers import (
    health,
    submissions,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Quiz Results API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup() -> None:
    init_db()
    app.state.catalog = load_catalog(config.QUESTIONS_PATH)


app.include_router(health.router)
app.include_router(submissions.router)


@app.get("/")
def root():
    return {"message": "Quiz Results API", "docs": "/docs"}


def run() -> None:
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Server is running on port %d", config.PORT)
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    run()
