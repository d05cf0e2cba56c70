"""Per-action contracts executed against the browser target."""

from __future__ import annotations

import base64
import logging
from typing import Any, Callable, Optional

from ..browser.base import (
    ActionTimeoutError,
    BrowserActionError,
    BrowserTarget,
    ElementNotFoundError,
    SessionFatalError,
)
from ..config import BrowserConfig, DownloadConfig
from ..content.platforms import get_rule
from ..models import (
    ActionKind,
    ActionRequest,
    ClickParams,
    DownloadMediaParams,
    ExtractionConfig,
    FillFormParams,
    GetTextParams,
    NavigateParams,
    OpenLoginPageParams,
    ScreenshotParams,
    ServiceRequestParams,
    TypeParams,
    WaitForElementParams,
)
from .extraction import extract

LOGGER = logging.getLogger(__name__)

Handler = Callable[[BrowserTarget, Any], dict[str, Any]]


class ActionExecutor:
    """Translate queued requests into calls on a :class:`BrowserTarget`.

    Parameters arrive already validated. Every wait is bounded by the
    configured action timeout unless the request carries its own.
    """

    def __init__(
        self,
        browser: Optional[BrowserConfig] = None,
        download: Optional[DownloadConfig] = None,
    ) -> None:
        browser = browser or BrowserConfig()
        self._timeout_ms = browser.action_timeout * 1000
        self._max_downloads = (download or DownloadConfig()).max_urls
        self._handlers: dict[ActionKind, Handler] = {
            ActionKind.NAVIGATE: self.navigate,
            ActionKind.TYPE: self.type_text,
            ActionKind.CLICK: self.click,
            ActionKind.FILL_FORM: self.fill_form,
            ActionKind.GET_TEXT: self.get_text,
            ActionKind.SCREENSHOT: self.screenshot,
            ActionKind.WAIT_FOR_ELEMENT: self.wait_for_element,
            ActionKind.DOWNLOAD_MEDIA: self.download_media,
            ActionKind.EXTRACT_DATA: self.extract_data,
            ActionKind.OPEN_LOGIN_PAGE: self.open_login_page,
            ActionKind.SERVICE_REQUEST: self.service_request,
        }

    def execute(self, target: BrowserTarget, request: ActionRequest) -> dict[str, Any]:
        LOGGER.info("Executing browser action %s", request.kind.value)
        handler = self._handlers.get(request.kind)
        if handler is None:
            raise BrowserActionError(f"Unsupported action type: {request.kind}")
        return handler(target, request.params)

    # Actions -----------------------------------------------------------------

    def navigate(self, target: BrowserTarget, params: NavigateParams) -> dict[str, Any]:
        state = target.goto(params.url, self._timeout_ms)
        return {
            "message": f"Navigated to {params.url}",
            "currentUrl": state.url,
            "title": state.title,
        }

    def type_text(self, target: BrowserTarget, params: TypeParams) -> dict[str, Any]:
        self._await_element(target, params.selector)
        if params.clear:
            target.clear_value(params.selector)
        target.type_text(params.selector, params.text, params.delay)
        return {
            "message": f'Typed "{params.text}" into {params.selector}',
            "selector": params.selector,
            "textLength": len(params.text),
            "delay": params.delay,
            "cleared": params.clear,
        }

    def click(self, target: BrowserTarget, params: ClickParams) -> dict[str, Any]:
        self._await_element(target, params.selector)
        target.click(params.selector)
        return {"message": f"Clicked {params.selector}", "selector": params.selector}

    def fill_form(self, target: BrowserTarget, params: FillFormParams) -> dict[str, Any]:
        # Fields already filled stay filled if a later one fails.
        fields = list(params.form_fields.items())
        for filled, (selector, value) in enumerate(fields):
            try:
                self._await_element(target, selector)
            except ElementNotFoundError as exc:
                raise ElementNotFoundError(
                    f"Form field not found: {selector} ({filled} of {len(fields)} fields filled)",
                    details={"field": selector, "filledCount": filled},
                ) from exc
            target.type_text(selector, value)

        submitted = False
        if params.submit_selector:
            target.pause(params.submit_delay)
            self._await_element(target, params.submit_selector)
            target.click(params.submit_selector)
            submitted = True
        suffix = " and submitted form" if submitted else ""
        return {
            "message": f"Filled {len(fields)} fields{suffix}",
            "fieldsCount": len(fields),
            "submitted": submitted,
            "submitDelay": params.submit_delay if submitted else 0,
        }

    def get_text(self, target: BrowserTarget, params: GetTextParams) -> dict[str, Any]:
        if params.multiple:
            texts = target.query_all_text(params.selector)
            return {
                "message": f"Extracted text from {len(texts)} elements",
                "texts": texts,
                "count": len(texts),
            }
        text = target.query_text(params.selector)
        if text is None:
            raise ElementNotFoundError(
                f"Element not found: {params.selector}",
                details={"selector": params.selector},
            )
        return {"message": f'Extracted text: "{text}"', "text": text}

    def screenshot(self, target: BrowserTarget, params: ScreenshotParams) -> dict[str, Any]:
        image = target.screenshot(params.selector, full_page=params.full_page)
        encoded = base64.b64encode(image).decode("ascii")
        scope = f" of {params.selector}" if params.selector else ""
        return {
            "message": f"Screenshot taken{scope}",
            "screenshot": f"data:image/png;base64,{encoded}",
            "mimeType": "image/png",
            "encoding": "base64",
            "fullPage": params.full_page,
        }

    def wait_for_element(
        self,
        target: BrowserTarget,
        params: WaitForElementParams,
    ) -> dict[str, Any]:
        target.wait_for_selector(params.selector, params.timeout, visible=params.visible)
        visibility = " and is visible" if params.visible else ""
        return {
            "message": f"Element {params.selector} appeared{visibility}",
            "selector": params.selector,
            "timeout": params.timeout,
            "waitedForVisible": params.visible,
        }

    def download_media(
        self,
        target: BrowserTarget,
        params: DownloadMediaParams,
    ) -> dict[str, Any]:
        downloads: list[dict[str, Any]] = []
        for url in params.urls[: self._max_downloads]:
            try:
                resource = target.fetch(url, self._timeout_ms)
            except SessionFatalError:
                raise
            except BrowserActionError as exc:
                downloads.append({"url": url, "success": False, "error": str(exc)})
                continue
            if not resource.ok:
                downloads.append(
                    {"url": url, "success": False, "error": f"HTTP {resource.status}"}
                )
                continue
            data = None
            if params.output_format == "base64":
                encoded = base64.b64encode(resource.body).decode("ascii")
                data = f"data:{resource.content_type};base64,{encoded}"
            downloads.append(
                {
                    "url": url,
                    "success": True,
                    "contentType": resource.content_type,
                    "size": len(resource.body),
                    "data": data,
                }
            )
        success_count = sum(1 for item in downloads if item["success"])
        return {
            "message": f"Downloaded {success_count}/{len(params.urls)} files",
            "downloads": downloads,
            "successCount": success_count,
        }

    def extract_data(self, target: BrowserTarget, params: ExtractionConfig) -> dict[str, Any]:
        result = extract(target, params, self._timeout_ms)
        result["message"] = (
            f"Data extraction completed with {len(result['extractedData'])} data types"
        )
        return result

    def open_login_page(
        self,
        target: BrowserTarget,
        params: OpenLoginPageParams,
    ) -> dict[str, Any]:
        rule = get_rule(params.platform)
        if rule is None or rule.login_url is None:
            raise BrowserActionError(f"Unsupported platform: {params.platform}")
        state = target.goto(rule.login_url, self._timeout_ms)
        return {
            "message": f"Authentication page loaded for {rule.name}",
            "platform": rule.name,
            "authResult": {"platform": rule.name, "loginPageLoaded": True},
            "currentUrl": state.url,
        }

    def service_request(
        self,
        target: BrowserTarget,
        params: ServiceRequestParams,
    ) -> dict[str, Any]:
        method = params.method.upper()
        response = target.fetch_json(
            params.endpoint,
            method=method,
            headers=params.headers,
            data=params.data,
        )
        return {
            "message": "Service request completed",
            "success": bool(response.get("success")),
            "endpoint": params.endpoint,
            "method": method,
            "response": response,
        }

    # Internal helpers --------------------------------------------------------

    def _await_element(self, target: BrowserTarget, selector: str) -> None:
        try:
            target.wait_for_selector(selector, self._timeout_ms)
        except ActionTimeoutError as exc:
            raise ElementNotFoundError(
                f"Element not found: {selector}",
                details={"selector": selector},
            ) from exc
