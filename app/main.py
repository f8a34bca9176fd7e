import logging
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import parse_qsl

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import Settings
from app.exceptions import AVAILABLE_ROUTES, ChatProcessingError, ChatValidationError
from app.logger import setup_logging
from app.models import ChatRequest, ChatResponse, ErrorResponse, HealthResponse
from app.services.chat_relay import PortfolioChatRelay

logger = logging.getLogger("PortfolioChatApp")

router = APIRouter()


async def read_payload(request: Request):
    """
    Decode the request body into a mapping. Empty bodies and unknown content
    types decode to {}; invalid JSON raises.
    """
    content_type = request.headers.get("content-type", "").lower()
    body = await request.body()

    if "application/x-www-form-urlencoded" in content_type:
        return dict(parse_qsl(body.decode("utf-8")))
    if "json" not in content_type or not body.strip():
        return {}
    return await request.json()


@router.get("/health", response_model=HealthResponse)
def health_check():
    logger.debug("Health check requested")
    return HealthResponse()


@router.post("/api/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat_endpoint(request: Request):
    relay: PortfolioChatRelay = request.app.state.relay

    try:
        payload = await read_payload(request)
        chat_request = ChatRequest.from_payload(payload)

        logger.info(f"Chat message received with {len(chat_request.conversationHistory)} history turns")

        result = await relay.process_message(
            message=chat_request.message,
            history=chat_request.conversationHistory,
        )
    except ChatValidationError:
        logger.warning("Client sent an empty or invalid message")
        raise
    except Exception as e:
        logger.error(f"Chat error: {e}", exc_info=True)
        raise ChatProcessingError(details=str(e)) from e

    return ChatResponse(response=result.text, source=result.source)


# --- EXCEPTION HANDLERS ---
def _error_response(request: Request, status_code: int, error: str, details: Optional[str] = None, **extra):
    settings: Settings = request.app.state.settings
    body = ErrorResponse(
        error=error,
        details=details if settings.is_development else None,
        **extra,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def validation_error_handler(request: Request, exc: ChatValidationError):
    return _error_response(request, exc.status_code, exc.detail)


async def chat_processing_error_handler(request: Request, exc: ChatProcessingError):
    return _error_response(request, exc.status_code, exc.detail, details=exc.details)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Unknown paths and wrong methods on known paths are both "not found"
    if exc.status_code in (404, 405):
        return _error_response(request, 404, "Route not found", availableRoutes=AVAILABLE_ROUTES)
    return _error_response(request, exc.status_code, str(exc.detail))


async def catch_unhandled_errors(request: Request, call_next):
    # Runs inside CORSMiddleware so the 500 body still carries CORS headers
    try:
        return await call_next(request)
    except Exception as exc:
        logger.error(f"Server error: {exc}", exc_info=exc)
        return _error_response(request, 500, "Internal server error", details=str(exc))


def create_app(settings: Settings, relay: Optional[PortfolioChatRelay] = None) -> FastAPI:
    if relay is None:
        relay = PortfolioChatRelay(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f">>> Portfolio Chatbot Backend is running on port {settings.port}")
        logger.info(f">>> Local: http://localhost:{settings.port}")
        logger.info(f">>> Health check: http://localhost:{settings.port}/health")
        logger.info(f">>> Chat endpoint: http://localhost:{settings.port}/api/chat")
        if relay.is_ready:
            logger.info(">>> OpenAI API key is configured, fallback available if OpenAI fails")
        else:
            logger.info(">>> No OpenAI API key, every chat request uses the fallback response")
            logger.info("    Add OPENAI_API_KEY to .env to enable OpenAI integration")

        yield

        logger.info(">>> Shutting down...")
        await relay.close()

    app = FastAPI(lifespan=lifespan, title="Portfolio Chatbot Backend")
    app.state.settings = settings
    app.state.relay = relay

    # Added first so CORSMiddleware ends up wrapping it
    app.middleware("http")(catch_unhandled_errors)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ChatValidationError, validation_error_handler)
    app.add_exception_handler(ChatProcessingError, chat_processing_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    app.include_router(router)
    return app


settings = Settings.from_env()
setup_logging(settings.log_dir)

app = create_app(settings)
