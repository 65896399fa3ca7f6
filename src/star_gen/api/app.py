"""FastAPI application exposing CSV parsing and STAR story generation."""

from __future__ import annotations

import logging
import os
from typing import Literal

import httpx
import jwt
from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from star_gen.adapters.completion_client_factory import completion_client_from_env
from star_gen.api.contracts import (
    ErrorResponse,
    GenerateStoriesRequest,
    GenerateStoriesResponse,
    ParseCsvRequest,
    ParseCsvResponse,
    StoryPayload,
)
from star_gen.api.oidc import OidcClaims, validate_oidc_token
from star_gen.core.feedback_csv import parse_feedback_csv
from star_gen.core.story_generation import generate_stories
from star_gen.domain.errors import (
    CsvFormatError,
    EmptyResultError,
    EmptyUpstreamResponseError,
    StoryGenerationError,
    UpstreamCallError,
)
from star_gen.domain.models import StoryRequest
from star_gen.domain.ports import CompletionClient

AuthMode = Literal["none", "oidc"]

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Simple health payload used by probes."""

    status: Literal["ok"] = "ok"
    service: str = "star_gen"


class ApiRootResponse(BaseModel):
    """Describes available endpoints and the active auth mode."""

    name: str = "star_gen"
    auth: AuthMode = "none"
    categories: list[str] = Field(
        default_factory=lambda: [
            "top5",
            "top10",
            "leadership",
            "technical",
            "sales",
            "colleague",
            "client",
            "employer",
            "custom",
        ]
    )
    endpoints: list[str] = Field(
        default_factory=lambda: [
            "/healthz",
            "/api/v1",
            "/api/v1/csv/parse",
            "/api/v1/stories/generate",
        ]
    )


def _cors_origins() -> list[str]:
    raw = os.environ.get("STAR_GEN_CORS_ORIGINS", "").strip()
    if raw:
        return [origin.strip() for origin in raw.split(",") if origin.strip()]
    return ["http://127.0.0.1:5173", "http://localhost:5173"]


def _int_env(name: str, default: int, *, minimum: int, maximum: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(minimum, min(maximum, value))


def _auth_mode() -> AuthMode:
    raw = os.environ.get("STAR_GEN_AUTH_MODE", "none").strip().lower()
    if raw in {"", "none"}:
        return "none"
    if raw == "oidc":
        return "oidc"
    raise RuntimeError("Unsupported STAR_GEN_AUTH_MODE value. Expected none or oidc.")


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(mode="json"),
    )


def _validation_message(exc: RequestValidationError) -> str:
    problems: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = str(error.get("msg", "invalid value"))
        problems.append(f"{location}: {message}" if location else message)
    if not problems:
        return "Invalid request."
    return "Invalid request: " + "; ".join(problems)


def create_app(completion_client: CompletionClient | None = None) -> FastAPI:
    """Create the API application.

    Without an explicit ``completion_client`` the provider is built from the
    environment on the first generation request.
    """
    auth_mode = _auth_mode()
    max_csv_chars = _int_env(
        "STAR_GEN_MAX_CSV_CHARS", 2_000_000, minimum=1_000, maximum=50_000_000
    )
    bearer = HTTPBearer(auto_error=False)
    resolved_client: list[CompletionClient] = (
        [completion_client] if completion_client is not None else []
    )

    app = FastAPI(
        title="star_gen API",
        version="0.1.0",
        description="Turns professional feedback exports into STAR interview stories.",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        openapi_tags=[
            {"name": "system", "description": "Service health and runtime metadata."},
            {"name": "api", "description": "API discovery and capability listing."},
            {"name": "feedback", "description": "Feedback CSV parsing."},
            {"name": "stories", "description": "STAR story generation."},
        ],
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info("api.start auth_mode=%s max_csv_chars=%s", auth_mode, max_csv_chars)

    @app.exception_handler(RequestValidationError)
    async def on_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        return _failure(status.HTTP_400_BAD_REQUEST, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def on_http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        response = _failure(exc.status_code, str(exc.detail))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(CsvFormatError)
    async def on_csv_error(_: Request, exc: CsvFormatError) -> JSONResponse:
        logger.warning("csv.parse.rejected error=%s", exc)
        return _failure(status.HTTP_400_BAD_REQUEST, f"Failed to process CSV data: {exc}")

    @app.exception_handler(StoryGenerationError)
    async def on_generation_error(_: Request, exc: StoryGenerationError) -> JSONResponse:
        if isinstance(exc, EmptyResultError):
            status_code = 422
            message = f"The model response contained no usable stories: {exc}"
        elif isinstance(exc, (UpstreamCallError, EmptyUpstreamResponseError)):
            status_code = status.HTTP_502_BAD_GATEWAY
            message = f"Story generation failed upstream: {exc}"
        else:
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
            message = f"Failed to generate stories: {exc}"
        logger.error(
            "stories.generate.failed status=%s error_type=%s error=%s",
            status_code,
            type(exc).__name__,
            exc,
        )
        return _failure(status_code, message)

    @app.exception_handler(Exception)
    async def on_unexpected_error(_: Request, exc: Exception) -> JSONResponse:
        logger.exception("api.unhandled_error error_type=%s", type(exc).__name__)
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred")

    def current_caller(
        credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    ) -> OidcClaims | None:
        if auth_mode == "none":
            return None
        if credentials is None:
            raise StarletteHTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Missing bearer token",
                headers={"WWW-Authenticate": "Bearer"},
            )
        try:
            return validate_oidc_token(credentials.credentials)
        except (jwt.PyJWTError, httpx.HTTPError, RuntimeError, ValueError) as exc:
            logger.warning("auth.rejected error_type=%s error=%s", type(exc).__name__, exc)
            raise StarletteHTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
                headers={"WWW-Authenticate": "Bearer"},
            ) from exc

    def story_client() -> CompletionClient:
        if not resolved_client:
            try:
                resolved_client.append(completion_client_from_env())
            except RuntimeError as exc:
                logger.error("completion.config_invalid error=%s", exc)
                raise StarletteHTTPException(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail=f"Completion service is not configured: {exc}",
                ) from exc
        return resolved_client[0]

    @app.get("/healthz", response_model=HealthResponse, tags=["system"])
    def healthz() -> HealthResponse:
        return HealthResponse()

    @app.get("/api/v1", response_model=ApiRootResponse, tags=["api"])
    def api_v1_root() -> ApiRootResponse:
        return ApiRootResponse(auth=auth_mode)

    @app.post(
        "/api/v1/csv/parse",
        response_model=ParseCsvResponse,
        responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
        tags=["feedback"],
    )
    def parse_csv(
        payload: ParseCsvRequest,
        caller: OidcClaims | None = Depends(current_caller),
    ) -> ParseCsvResponse:
        if len(payload.csv_data) > max_csv_chars:
            raise StarletteHTTPException(
                status_code=413,
                detail=f"CSV data exceeds {max_csv_chars} characters",
            )
        records = parse_feedback_csv(payload.csv_data)
        logger.info(
            "csv.parse rows=%s caller=%s", len(records), caller.subject if caller else "-"
        )
        return ParseCsvResponse(data=[dict(record) for record in records])

    @app.post(
        "/api/v1/stories/generate",
        response_model=GenerateStoriesResponse,
        responses={
            400: {"model": ErrorResponse},
            401: {"model": ErrorResponse},
            422: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
            502: {"model": ErrorResponse},
        },
        tags=["stories"],
    )
    def generate(
        payload: GenerateStoriesRequest,
        caller: OidcClaims | None = Depends(current_caller),
    ) -> GenerateStoriesResponse:
        logger.info(
            "stories.request records=%s category=%s has_custom_prompt=%s caller=%s",
            len(payload.parsed_data),
            payload.interaction_type,
            bool(payload.custom_prompt),
            caller.subject if caller else "-",
        )
        request = StoryRequest(
            records=payload.parsed_data,
            category=payload.interaction_type,
            instructions=payload.custom_prompt,
        )
        stories = generate_stories(request, story_client())
        return GenerateStoriesResponse(
            stories=[StoryPayload.from_story(story) for story in stories]
        )

    return app


app = create_app()
