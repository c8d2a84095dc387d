from fastapi import FastAPI, Request
from loguru import logger

from runplan.api.training_plan import router as training_plan_router
from runplan.config.settings import settings
from runplan.core.logger import setup_logger

# Initialize logger
setup_logger(settings)

app = FastAPI(title="runplan")

app.include_router(training_plan_router)

logger.info("FastAPI application initialized")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests."""
    logger.debug(f"Request: {request.method} {request.url.path}")
    response = await call_next(request)
    logger.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
    return response
