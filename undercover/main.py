from fastapi import FastAPI
import logging

from undercover.api.routes import router
from undercover.assets.startup import init_lexicons_for_app

app = FastAPI(title="undercover", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def _startup() -> None:
    init_lexicons_for_app()


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "undercover", "version": "0.1.0"}
