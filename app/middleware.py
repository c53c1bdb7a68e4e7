import time
import uuid
from fastapi import Request
from app.logger import get_logger

logger = get_logger(__name__)


async def add_request_id_and_process_time(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        duration_ms = (time.perf_counter() - start) * 1000
        logger.error(
            f"[{request_id}] {request.method} {request.url.path} -> 500 ({duration_ms:.2f} ms)"
        )
        raise

    duration = time.perf_counter() - start
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = f"{duration:.4f}"
    logger.info(
        f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} ({duration * 1000:.2f} ms)"
    )
    return response
