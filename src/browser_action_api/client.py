"""HTTP client for driving a running browser action service."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx


class ActionServiceError(RuntimeError):
    """Raised when the service answers with an error status."""

    def __init__(self, status_code: int, error: str, message: str) -> None:
        super().__init__(f"{error}: {message}" if message else error)
        self.status_code = status_code
        self.error = error
        self.message = message


class ActionServiceClient:
    """Wrapper around the browser action HTTP API.

    ``http_client`` lets callers supply a preconfigured ``httpx.Client`` (for
    example a FastAPI ``TestClient``); otherwise one is created and owned here.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: Optional[str] = None,
        timeout: float = 120.0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        headers = {"X-API-Key": api_key} if api_key else {}
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
        )
        self._headers = headers

    def __enter__(self) -> "ActionServiceClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def health(self) -> Dict[str, Any]:
        response = self._client.get("/", headers=self._headers)
        return self._unwrap(response)

    def navigate(self, url: str) -> Dict[str, Any]:
        return self._post("/navigate", {"url": url})

    def type_text(
        self,
        selector: str,
        text: str,
        *,
        delay: float = 0,
        clear: bool = False,
    ) -> Dict[str, Any]:
        payload = {"selector": selector, "text": text, "delay": delay, "clear": clear}
        return self._post("/type", payload)

    def click(self, selector: str) -> Dict[str, Any]:
        return self._post("/click", {"selector": selector})

    def fill_form(
        self,
        fields: Dict[str, str],
        *,
        submit_selector: Optional[str] = None,
        submit_delay: Optional[float] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"fields": fields}
        if submit_selector:
            payload["submitSelector"] = submit_selector
        if submit_delay is not None:
            payload["submitDelay"] = submit_delay
        return self._post("/fill-form", payload)

    def get_text(self, selector: str, *, multiple: bool = False) -> Dict[str, Any]:
        return self._post("/get-text", {"selector": selector, "multiple": multiple})

    def screenshot(
        self,
        selector: Optional[str] = None,
        *,
        full_page: bool = False,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"fullPage": full_page}
        if selector:
            payload["selector"] = selector
        return self._post("/screenshot", payload)

    def wait_for_element(
        self,
        selector: str,
        *,
        timeout: Optional[float] = None,
        visible: bool = False,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"selector": selector, "visible": visible}
        if timeout is not None:
            payload["timeout"] = timeout
        return self._post("/wait-for-element", payload)

    def extract_data(
        self,
        *,
        selectors: Optional[Dict[str, str]] = None,
        data_types: Optional[List[str]] = None,
        limit: Optional[int] = None,
        wait_for: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if selectors:
            payload["selectors"] = selectors
        if data_types is not None:
            payload["dataTypes"] = data_types
        if limit is not None:
            payload["limit"] = limit
        if wait_for:
            payload["waitFor"] = wait_for
        return self._post("/extract-data", payload)

    def download_media(self, urls: List[str], *, output_format: str = "base64") -> Dict[str, Any]:
        return self._post("/download-media", {"urls": urls, "outputFormat": output_format})

    def open_login_page(self, platform: str) -> Dict[str, Any]:
        return self._post("/open-login-page", {"platform": platform})

    def service_request(
        self,
        endpoint: str,
        *,
        data: Any = None,
        method: str = "POST",
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"endpoint": endpoint, "data": data, "method": method}
        if headers:
            payload["headers"] = headers
        return self._post("/service-request", payload)

    def analyze_content(
        self,
        content: Any,
        *,
        analysis_types: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"content": content}
        if analysis_types is not None:
            payload["analysisTypes"] = analysis_types
        return self._post("/analyze-content", payload)

    def generate_variants(
        self,
        base_content: str,
        *,
        platforms: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"baseContent": base_content}
        if platforms is not None:
            payload["platforms"] = platforms
        return self._post("/generate-variants", payload)

    def process_template(
        self,
        template: str,
        data: Dict[str, Any],
        *,
        template_type: str = "text",
    ) -> Dict[str, Any]:
        payload = {"template": template, "data": data, "templateType": template_type}
        return self._post("/template-processor", payload)

    # Internal helpers --------------------------------------------------------

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = self._client.post(path, json=payload, headers=self._headers)
        return self._unwrap(response)

    @staticmethod
    def _unwrap(response: httpx.Response) -> Dict[str, Any]:
        if response.is_success:
            return dict(response.json())
        try:
            body = response.json()
        except ValueError:
            body = {}
        raise ActionServiceError(
            response.status_code,
            str(body.get("error") or response.reason_phrase),
            str(body.get("message") or ""),
        )
