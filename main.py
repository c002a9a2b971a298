import uvicorn
import time
import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from bugrelay.api.dependencies import close_singletons
from bugrelay.api.inspector import router as inspector_router
from bugrelay.api.reports import router as reports_router
from bugrelay.api.webhooks import router as webhooks_router
from bugrelay.core import config
from bugrelay.utils.logging_config import setup_logging

setup_logging(level=logging.INFO, log_dir=os.getenv("LOG_DIR", "logs") or None)
logger = logging.getLogger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    config.validate_pipeline_config()
    logger.info(
        "%s %s starting (storage: %s, pipeline mode: %s)",
        config.SERVICE_NAME,
        config.SERVICE_VERSION,
        config.STORAGE_DIR or "disabled",
        config.PIPELINE_MODE,
    )
    if not config.LOGWARD_API_KEY:
        logger.warning("LOGWARD_API_KEY not set, log forwarding disabled")
    yield
    await close_singletons()


app = FastAPI(title="Bug Report Relay API", version=config.SERVICE_VERSION, lifespan=lifespan)

# ---------------------------------------------------------------------------
# Logging Middleware
# ---------------------------------------------------------------------------
class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client_host = request.client.host if request.client else "unknown"
        # Webhook paths carry their secret; log the route prefix only
        path = request.url.path
        if path.startswith("/hooks/"):
            path = path.rsplit("/", 1)[0] + "/***"
        logger.info(f"Incoming: {request.method} {path} from {client_host}")

        try:
            response = await call_next(request)
            process_time = (time.time() - start_time) * 1000
            logger.info(
                f"Outgoing: {request.method} {path} - "
                f"Status: {response.status_code} - "
                f"Time: {process_time:.2f}ms"
            )
            return response
        except Exception as e:
            logger.error(f"Request failed: {request.method} {path} - Error: {str(e)}")
            raise

app.add_middleware(LoggingMiddleware)

# ---------------------------------------------------------------------------
# CORS: mobile web builds and the report inspector call the API directly
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Health endpoint
@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": config.SERVICE_NAME, "version": config.SERVICE_VERSION}

# Register routers
app.include_router(reports_router)
app.include_router(webhooks_router)
app.include_router(inspector_router)

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=config.PORT)
