import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import FastAPI, Response, Request, Depends, Form, HTTPException, status, Query
from fastapi.responses import JSONResponse, RedirectResponse

from msgboard.config import settings
from msgboard.exceptions import MessageBoardError, StorageError
from msgboard.logging_utils import setup_logging, RequestLoggingMiddleware, log_board_event
from msgboard.metrics import record_board_event, get_metrics, get_metrics_content_type
from msgboard.schemas import ErrorResponse, HealthResponse, PageResult
from msgboard.service import (
    build_list_path,
    delete_message,
    list_messages,
    redirect_page_after_delete,
    submit_message,
)
from msgboard.storage import MessageStore


# Setup structured JSON logging
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    - Startup: Open the message store and create tables
    - Shutdown: Close the store and release its connections
    """
    store = MessageStore(settings.DATABASE_URL).open()
    app.state.store = store
    try:
        yield
    finally:
        store.close()


app = FastAPI(
    title="Message Board",
    description="Markdown message board with search, pagination and a retention cap",
    version="1.0.0",
    lifespan=lifespan,
)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)


def get_store(request: Request) -> MessageStore:
    """Dependency returning the store opened at startup."""
    return request.app.state.store


def limit_body_size(request: Request) -> None:
    """Reject form posts whose declared Content-Length exceeds MAX_BODY_BYTES."""
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > settings.MAX_BODY_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Request body too large"
        )


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(MessageBoardError)
async def message_board_exception_handler(request: Request, exc: MessageBoardError):
    """Translate core failures into a generic error response."""
    logger.error(f"Message board error: {exc}", exc_info=exc)
    message = exc.message
    if isinstance(exc, StorageError):
        message = "Internal server error"
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.error_code, message=message).model_dump(),
    )


# =============================================================================
# Health Check Routes
# =============================================================================

@app.get("/health/live", response_model=HealthResponse)
async def health_live() -> HealthResponse:
    """
    Liveness probe - always returns 200 once the app is running.
    """
    return HealthResponse(status="ok")


@app.get("/health/ready", response_model=HealthResponse)
async def health_ready(response: Response, store: MessageStore = Depends(get_store)) -> HealthResponse:
    """
    Readiness probe - returns 200 only if the DB is reachable and schema is applied.
    Otherwise returns 503 (Service Unavailable).
    """
    if not store.check_health():
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(
            status="not_ready",
            reason="Database not reachable or schema not applied"
        )

    return HealthResponse(status="ready")


# =============================================================================
# Listing Routes
# =============================================================================

@app.get("/", response_model=PageResult)
@app.get("/messages", response_model=PageResult)
async def list_board(
    q: Annotated[str | None, Query(description="Substring search in message content (case-insensitive)")] = None,
    page: Annotated[str | None, Query(description="1-based page number; clamped into range")] = None,
    store: MessageStore = Depends(get_store)
) -> PageResult:
    """
    List messages newest first, PAGE_SIZE per page.

    Query Parameters:
        - q: Search term; % and _ are matched literally
        - page: Page number; invalid values fall back to page 1, values past
          the end fall back to the last page

    Response:
        - items: Messages on this page (id, content, created_at)
        - current_page / total_pages / total_count: pagination metadata
        - search_term: the trimmed search term
    """
    logger.info(f"List messages: page={page!r}, q={q!r}")
    result = list_messages(store, q, page)
    logger.debug(
        f"Served page {result.current_page}/{result.total_pages} "
        f"with {len(result.items)} of {result.total_count} messages"
    )
    return result


# =============================================================================
# Write Routes
# =============================================================================

@app.post(
    "/submit",
    status_code=status.HTTP_303_SEE_OTHER,
    dependencies=[Depends(limit_body_size)],
    responses={413: {"model": ErrorResponse, "description": "Body too large"}},
)
async def submit(
    request: Request,
    message: Annotated[str, Form(description="Markdown source of the message")] = "",
    store: MessageStore = Depends(get_store)
) -> RedirectResponse:
    """
    Post a new message (form field `message`) and redirect to the first page.

    Blank messages are ignored. The oldest messages are evicted once the
    board holds more than MAX_MESSAGES.
    """
    outcome = submit_message(store, message)

    result = "created" if outcome.created else "empty"
    record_board_event("submit", result, evicted=outcome.evicted)
    log_board_event(
        request=request,
        action="submit",
        message_id=outcome.id,
        result=result,
        evicted=outcome.evicted
    )

    return RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)


@app.post(
    "/delete",
    status_code=status.HTTP_303_SEE_OTHER,
    dependencies=[Depends(limit_body_size)],
    responses={413: {"model": ErrorResponse, "description": "Body too large"}},
)
async def delete(
    request: Request,
    raw_id: Annotated[str | None, Form(alias="id", description="Id of the message to delete")] = None,
    page: Annotated[str | None, Form(description="Page to return to")] = None,
    q: Annotated[str | None, Form(description="Search term to keep")] = None,
    store: MessageStore = Depends(get_store)
) -> RedirectResponse:
    """
    Delete a message (form fields `id`, `page`, `q`) and redirect back.

    Deleting an unknown id is a no-op. The redirect keeps the search term
    and returns to the same page, clamped to the pages that remain.
    """
    outcome = delete_message(store, raw_id)

    if outcome.id is None:
        result = "invalid_id"
    else:
        result = "deleted" if outcome.deleted else "not_found"
    record_board_event("delete", result)
    log_board_event(
        request=request,
        action="delete",
        message_id=outcome.id,
        result=result
    )

    search_term = q or ""
    target_page = redirect_page_after_delete(store, page, search_term)
    return RedirectResponse(
        url=build_list_path(target_page, search_term),
        status_code=status.HTTP_303_SEE_OTHER
    )


# =============================================================================
# Metrics Route
# =============================================================================

@app.get("/metrics")
async def metrics() -> Response:
    """
    Expose Prometheus-style metrics.
    """
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type()
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
