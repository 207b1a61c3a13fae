import logging

from fastapi import FastAPI

from gridmerge.api.routes import router
from gridmerge.config import get_log_level

app = FastAPI(title="gridmerge", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=get_log_level())
logger = logging.getLogger(__name__)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "gridmerge", "version": "0.1.0"}
