"""HTTP service exposing browser actions and content transformations."""

from __future__ import annotations

import asyncio
import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from typing import Any, AsyncIterator, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import ServiceConfig
from ..content.transform import analyze_content, generate_variants, process_template
from ..factory import build_serializer, build_session_manager
from ..models import (
    ActionFailure,
    ActionKind,
    ActionParams,
    ActionRequest,
    AnalyzeContentParams,
    ClickParams,
    DownloadMediaParams,
    ErrorKind,
    ExtractionConfig,
    FillFormParams,
    GenerateVariantsParams,
    GetTextParams,
    NavigateParams,
    OpenLoginPageParams,
    ScreenshotParams,
    ServiceRequestParams,
    TemplateParams,
    TypeParams,
    WaitForElementParams,
)
from ..session.manager import SessionManager
from ..session.serializer import ActionSerializer

LOGGER = logging.getLogger(__name__)

SERVICE_NAME = "Browser Action API"

ENDPOINTS = [
    "POST /navigate - Navigate to URL",
    "POST /type - Type text into element",
    "POST /click - Click element",
    "POST /fill-form - Fill multiple form fields",
    "POST /get-text - Extract text from elements",
    "POST /screenshot - Take screenshot",
    "POST /wait-for-element - Wait for element to appear",
    "POST /extract-data - Extract structured data from pages",
    "POST /download-media - Download files from URLs",
    "POST /open-login-page - Open a platform login page",
    "POST /service-request - Call a JSON service from the page context",
    "POST /analyze-content - Extract insights and patterns",
    "POST /generate-variants - Create platform-specific content",
    "POST /template-processor - Process templates with data",
]

_STATUS_BY_KIND = {
    ErrorKind.MALFORMED_INPUT: 400,
    ErrorKind.ELEMENT_NOT_FOUND: 404,
}


def _service_version() -> str:
    try:
        return get_version("browser-action-api")
    except PackageNotFoundError:  # pragma: no cover - when running from source tree
        return "0.0.0"


def _error_body(error: str, message: str, **extra: Any) -> dict[str, Any]:
    return {"error": error, "message": message, **extra}


class ActionFailed(Exception):
    """Carries a failed :class:`ActionResult` up to the response layer."""

    def __init__(self, label: str, failure: ActionFailure) -> None:
        super().__init__(failure.message)
        self.label = label
        self.failure = failure


class ActionService:
    """Wire the serializer and content pipeline into a FastAPI application."""

    def __init__(
        self,
        config: ServiceConfig,
        sessions: SessionManager,
        serializer: ActionSerializer,
    ) -> None:
        self._config = config
        self._sessions = sessions
        self._serializer = serializer

    def create_app(self) -> FastAPI:
        @asynccontextmanager
        async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
            self._serializer.start()
            try:
                yield
            finally:
                LOGGER.info("Shutting down; releasing browser target")
                await run_in_threadpool(self._serializer.close)

        app = FastAPI(title=SERVICE_NAME, lifespan=lifespan)
        app.add_middleware(
            CORSMiddleware,
            allow_origins=self._config.server.cors_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        self._register_error_handlers(app)

        @app.get("/")
        def health() -> dict[str, Any]:
            return self.health()

        actions = APIRouter(dependencies=[Depends(self._require_api_key)])
        self._register_action_routes(actions)
        self._register_content_routes(actions)
        app.include_router(actions)
        return app

    def health(self) -> dict[str, Any]:
        auth = "API key required" if self._config.auth.api_key else "disabled"
        return {
            "status": "ready",
            "service": SERVICE_NAME,
            "version": _service_version(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "authentication": auth,
            "session": self._sessions.describe(),
            "queueDepth": self._serializer.pending_count(),
            "endpoints": ENDPOINTS,
        }

    # Routes ------------------------------------------------------------------

    def _register_action_routes(self, router: APIRouter) -> None:
        @router.post("/navigate")
        async def navigate(payload: NavigateParams) -> dict[str, Any]:
            return await self._submit("Navigation", ActionKind.NAVIGATE, payload)

        @router.post("/type")
        async def type_text(payload: TypeParams) -> dict[str, Any]:
            return await self._submit("Type", ActionKind.TYPE, payload)

        @router.post("/click")
        async def click(payload: ClickParams) -> dict[str, Any]:
            return await self._submit("Click", ActionKind.CLICK, payload)

        @router.post("/fill-form")
        async def fill_form(payload: FillFormParams) -> dict[str, Any]:
            return await self._submit("Form filling", ActionKind.FILL_FORM, payload)

        @router.post("/get-text")
        async def get_text(payload: GetTextParams) -> dict[str, Any]:
            return await self._submit("Text extraction", ActionKind.GET_TEXT, payload)

        @router.post("/screenshot")
        async def screenshot(payload: Optional[ScreenshotParams] = None) -> dict[str, Any]:
            params = payload or ScreenshotParams()
            return await self._submit("Screenshot", ActionKind.SCREENSHOT, params)

        @router.post("/wait-for-element")
        async def wait_for_element(payload: WaitForElementParams) -> dict[str, Any]:
            return await self._submit("Wait", ActionKind.WAIT_FOR_ELEMENT, payload)

        @router.post("/extract-data")
        async def extract_data(payload: Optional[ExtractionConfig] = None) -> dict[str, Any]:
            params = payload or ExtractionConfig()
            return await self._submit("Data extraction", ActionKind.EXTRACT_DATA, params)

        @router.post("/download-media")
        async def download_media(payload: DownloadMediaParams) -> dict[str, Any]:
            return await self._submit("Media download", ActionKind.DOWNLOAD_MEDIA, payload)

        @router.post("/open-login-page")
        async def open_login_page(payload: OpenLoginPageParams) -> dict[str, Any]:
            label = "Platform authentication"
            return await self._submit(label, ActionKind.OPEN_LOGIN_PAGE, payload)

        @router.post("/service-request")
        async def service_request(payload: ServiceRequestParams) -> dict[str, Any]:
            label = "Service request"
            return await self._submit(label, ActionKind.SERVICE_REQUEST, payload)

    def _register_content_routes(self, router: APIRouter) -> None:
        @router.post("/analyze-content")
        async def analyze(payload: AnalyzeContentParams) -> dict[str, Any]:
            analysis = analyze_content(payload.content, payload.analysis_types)
            return {
                "success": True,
                "analysis": analysis,
                "message": "Content analysis completed",
            }

        @router.post("/generate-variants")
        async def variants(payload: GenerateVariantsParams) -> dict[str, Any]:
            generated = generate_variants(payload.base_content, payload.platforms)
            return {
                "success": True,
                "baseContent": payload.base_content,
                "variants": generated,
                "message": f"Generated {len(generated)} platform variants",
            }

        @router.post("/template-processor")
        async def template(payload: TemplateParams) -> dict[str, Any]:
            result = process_template(payload.template, payload.data, payload.template_type)
            return {
                "success": True,
                "templateType": payload.template_type,
                "result": result,
                "message": "Template processing completed",
            }

    # Internal helpers --------------------------------------------------------

    async def _submit(
        self,
        label: str,
        kind: ActionKind,
        params: ActionParams,
    ) -> dict[str, Any]:
        # Awaiting the future keeps queued callers off the threadpool.
        future = self._serializer.submit_future(ActionRequest(kind=kind, params=params))
        result = await asyncio.wrap_future(future)
        if isinstance(result, ActionFailure):
            raise ActionFailed(label, result)
        return {"success": True, **result.payload}

    async def _require_api_key(self, request: Request) -> None:
        auth = self._config.auth
        if not auth.api_key:
            return
        provided = request.headers.get(auth.header_name) or request.query_params.get(
            auth.query_param
        )
        if not provided:
            raise HTTPException(status_code=401, detail="API key required")
        if not secrets.compare_digest(provided.encode(), auth.api_key.encode()):
            raise HTTPException(status_code=403, detail="Invalid API key")

    def _register_error_handlers(self, app: FastAPI) -> None:
        auth = self._config.auth

        @app.exception_handler(ActionFailed)
        async def action_failed(_request: Request, exc: ActionFailed) -> JSONResponse:
            failure = exc.failure
            status = _STATUS_BY_KIND.get(failure.kind, 500)
            body = _error_body(
                f"{exc.label} failed",
                failure.message,
                kind=failure.kind.value,
            )
            if failure.details:
                body["details"] = failure.details
            return JSONResponse(status_code=status, content=body)

        @app.exception_handler(RequestValidationError)
        async def malformed_input(
            _request: Request,
            exc: RequestValidationError,
        ) -> JSONResponse:
            problems = [
                f"{'.'.join(str(part) for part in error['loc'] if part != 'body') or 'body'}: "
                f"{error['msg']}"
                for error in exc.errors()
            ]
            body = _error_body(
                "Malformed input",
                "; ".join(problems),
                kind=ErrorKind.MALFORMED_INPUT.value,
            )
            return JSONResponse(status_code=400, content=body)

        @app.exception_handler(StarletteHTTPException)
        async def http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
            messages = {
                401: (
                    f"Please provide an API key in the {auth.header_name} header "
                    f"or the {auth.query_param} query parameter"
                ),
                403: "The provided API key is not valid",
            }
            message = messages.get(exc.status_code, str(exc.detail))
            return JSONResponse(
                status_code=exc.status_code,
                content=_error_body(str(exc.detail), message),
                headers=getattr(exc, "headers", None),
            )

        @app.exception_handler(Exception)
        async def internal_error(_request: Request, exc: Exception) -> JSONResponse:
            LOGGER.exception("Unhandled error while serving request")
            body = _error_body("Internal error", str(exc), kind=ErrorKind.EXECUTION_ERROR.value)
            return JSONResponse(status_code=500, content=body)


def create_app(
    config: Optional[ServiceConfig] = None,
    *,
    sessions: Optional[SessionManager] = None,
    serializer: Optional[ActionSerializer] = None,
) -> FastAPI:
    """Build the application; pass ``sessions``/``serializer`` to inject doubles."""

    config = config or ServiceConfig()
    sessions = sessions or build_session_manager(config.browser)
    serializer = serializer or build_serializer(config, sessions)
    return ActionService(config, sessions, serializer).create_app()
