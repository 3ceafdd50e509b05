from fastapi import APIRouter, FastAPI, Depends, Header, Query, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
import logging
import time

from pydantic import ValidationError

# Local imports
from config import API_KEY_HEADER, SERVICE_NAME, SERVICE_VERSION, Settings, get_settings
from database import Database
from dtos.chat_request import ChatRequest
from exceptions import BadRequestError, GatewayError, PersistenceError
from schemas import ChatResponse, HealthResponse, ThreadHistoryResponse, ThreadListResponse
from services import ConversationGateway, CredentialGuard, LLMProxy, RateLimiter, ThreadStore
from services.threads import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT

logging.basicConfig(level=get_settings().log_level, format="[%(asctime)s] %(levelname)s %(name)s - %(message)s")
logger = logging.getLogger(__name__)


def client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"


# Dependencies for the versioned API, run in this order on every /v1 route
async def require_api_key(
    request: Request,
    api_key: Optional[str] = Header(None, alias=API_KEY_HEADER),
) -> None:
    """Reject requests without the right shared secret."""
    request.app.state.credential_guard.authenticate(api_key, client_host(request))


async def enforce_rate_limit(request: Request, response: Response) -> None:
    """Count the request against the caller's window and advertise the remaining budget."""
    result = request.app.state.rate_limiter.check(client_host(request))
    response.headers.update(result.headers())


v1 = APIRouter(prefix="/v1", dependencies=[Depends(require_api_key), Depends(enforce_rate_limit)])


async def read_chat_request(request: Request) -> ChatRequest:
    """Decode the chat body; only called once the caller is authenticated and within its budget."""
    try:
        payload = await request.json()
    except ValueError:
        raise BadRequestError("Invalid request")
    try:
        return ChatRequest.model_validate(payload)
    except ValidationError:
        raise BadRequestError("Invalid request")


@v1.post(
    "/chat",
    response_model=ChatResponse,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": ChatRequest.model_json_schema(by_alias=True)}},
        }
    },
)
async def chat(request: Request) -> ChatResponse:
    """Send a message to Bo, continuing `threadId` or starting a new thread."""
    gateway: ConversationGateway = request.app.state.gateway
    body = await read_chat_request(request)
    try:
        return await gateway.chat(body)
    except GatewayError:
        raise
    except Exception as e:
        logger.exception("[Chat] Unexpected error")
        raise GatewayError(f"{e.__class__.__name__}: {e}") from e


@v1.get("/threads/{thread_id}", response_model=ThreadHistoryResponse)
async def get_thread(thread_id: str, request: Request) -> ThreadHistoryResponse:
    """Full ordered history of a thread; unknown threads have none."""
    store: ThreadStore = request.app.state.thread_store
    try:
        messages = await run_in_threadpool(store.get_thread_history, thread_id)
    except PersistenceError as e:
        raise PersistenceError(str(e), error="Failed to fetch thread") from e
    return ThreadHistoryResponse(thread_id=thread_id, messages=messages)


@v1.get("/threads", response_model=ThreadListResponse)
async def list_threads(
    request: Request,
    user_email: Optional[str] = Query(None, alias="userEmail"),
    limit: int = Query(DEFAULT_LIST_LIMIT, ge=1, description=f"Page size, capped at {MAX_LIST_LIMIT}"),
) -> ThreadListResponse:
    """A user's threads, most recently updated first."""
    if not user_email:
        return ThreadListResponse(threads=[])

    store: ThreadStore = request.app.state.thread_store
    try:
        threads = await run_in_threadpool(store.list_threads_for_user, user_email, limit)
    except PersistenceError as e:
        raise PersistenceError(str(e), error="Failed to fetch threads") from e
    return ThreadListResponse(threads=threads)


def create_app(
    settings: Optional[Settings] = None,
    thread_store: Optional[ThreadStore] = None,
    llm_proxy: Optional[LLMProxy] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """Build the gateway app; components not passed in are built from `settings`."""
    settings = settings or get_settings()
    if thread_store is None:
        thread_store = ThreadStore(Database(settings.database_url))
    if llm_proxy is None:
        llm_proxy = LLMProxy(
            api_key=settings.llm_api_key,
            api_url=settings.llm_api_url,
            model=settings.llm_model,
            timeout=settings.llm_timeout_seconds,
        )
    if rate_limiter is None:
        rate_limiter = RateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"[Bo Gateway] Starting {SERVICE_NAME} {SERVICE_VERSION}")
        logger.info(f"[Bo Gateway] Environment: {settings.environment}")
        if not llm_proxy.configured:
            logger.warning("[Bo Gateway] LLM API key not configured, chat requests will fail")

        store_status = await run_in_threadpool(thread_store.initialize)
        logger.info(f"[Database] Store status: {store_status.value}")

        yield

        if thread_store.database is not None:
            thread_store.database.dispose()

    app = FastAPI(
        title="Bo Gateway",
        version=SERVICE_VERSION,
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.thread_store = thread_store
    app.state.llm_proxy = llm_proxy
    app.state.rate_limiter = rate_limiter
    app.state.credential_guard = CredentialGuard(settings.api_key)
    app.state.gateway = ConversationGateway(thread_store, llm_proxy)

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_origin_regex=settings.allowed_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", API_KEY_HEADER],
        expose_headers=["RateLimit-Limit", "RateLimit-Remaining", "RateLimit-Reset", "Retry-After"],
        max_age=3600
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(f"{request.method} {request.url.path} - {response.status_code} ({duration_ms:.0f}ms)")
        return response

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        content = {"error": exc.error}
        if exc.expose_details:
            logger.error(f"[{request.method} {request.url.path}] {exc}")
            if not settings.is_production:
                content["details"] = str(exc)
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        content = {"error": "Invalid request"}
        if not settings.is_production:
            content["details"] = jsonable_encoder(exc.errors())
        return JSONResponse(status_code=400, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            service=SERVICE_NAME,
            version=SERVICE_VERSION,
        )

    @app.get("/health/detailed")
    async def detailed_health_check():
        """Status of the store and the LLM credential."""
        store_status = await run_in_threadpool(lambda: thread_store.status)
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "checks": {
                "database": {"status": store_status.value},
                "llm": {"status": "configured" if llm_proxy.configured else "not_configured"},
            },
        }

    app.include_router(v1)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
