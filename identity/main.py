from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
import time
from loguru import logger
import uuid
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

from identity.api.v1 import auth
from identity.core.config import settings
from identity.services.accounts import drain_background_tasks

REQUEST_COUNT = Counter(
    "identity_request_count",
    "Application Request Count",
    ["app_name", "method", "endpoint", "http_status"]
)
REQUEST_LATENCY = Histogram(
    "identity_request_latency_seconds",
    "Application Request Latency",
    ["app_name", "method", "endpoint"]
)

app = FastAPI(
    title="Identity Service API",
    description="Account creation, login, profile edits and email verification",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = str(uuid.uuid4())
    logger.info(f"[{request_id}] {request.method} {request.url.path}")

    start_time = time.time()

    try:
        response = await call_next(request)
        process_time = time.time() - start_time

        REQUEST_LATENCY.labels(
            settings.PROJECT_NAME,
            request.method,
            request.url.path
        ).observe(process_time)

        REQUEST_COUNT.labels(
            settings.PROJECT_NAME,
            request.method,
            request.url.path,
            response.status_code
        ).inc()

        logger.info(f"[{request_id}] Completed {response.status_code} in {process_time:.4f}s")

        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.exception(f"[{request_id}] Failed in {process_time:.4f}s: {str(e)}")

        return JSONResponse(
            status_code=500,
            content={"detail": "Internal Server Error"}
        )


app.include_router(
    auth.router,
    prefix=f"{settings.API_V1_STR}/auth",
    tags=["authentication"]
)


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


@app.on_event("shutdown")
async def flush_notifications():
    logger.info("Waiting for pending verification emails...")
    await drain_background_tasks()
