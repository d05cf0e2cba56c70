"""End-to-end tool chain: scrape a page, then derive publishable content."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .client import ActionServiceClient, ActionServiceError

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_CONTENT = "Check out this trending content! #viral #trending #socialmedia"
DEFAULT_TEMPLATE = "Create viral content about {{topic}} with style {{style}} for {{platform}}"
DEFAULT_TEMPLATE_DATA = {
    "topic": "trending memes",
    "style": "funny and engaging",
    "platform": "Instagram",
}
SAMPLE_DOWNLOADS = 3


@dataclass
class WorkflowStep:
    """Outcome of one call in the chain."""

    name: str
    success: bool
    summary: str
    result: dict[str, Any] = field(default_factory=dict)


class _StepFailed(Exception):
    pass


def run_content_workflow(
    client: ActionServiceClient,
    url: str,
    *,
    base_content: str = DEFAULT_BASE_CONTENT,
    template: str = DEFAULT_TEMPLATE,
    template_data: Optional[dict[str, Any]] = None,
    on_step: Optional[Callable[[WorkflowStep], None]] = None,
) -> list[WorkflowStep]:
    """Run the chain, stopping at the first failing step.

    Returns the steps that ran; the last one tells whether the chain
    completed.
    """

    steps: list[WorkflowStep] = []

    def record(step: WorkflowStep) -> WorkflowStep:
        steps.append(step)
        if on_step:
            on_step(step)
        if not step.success:
            raise _StepFailed(step.name)
        return step

    def call(name: str, summarize: Callable[[dict[str, Any]], str], fn, *args, **kwargs):
        try:
            result = fn(*args, **kwargs)
        except ActionServiceError as exc:
            LOGGER.warning("Workflow step %s failed: %s", name, exc)
            return record(WorkflowStep(name=name, success=False, summary=str(exc)))
        step = WorkflowStep(name=name, success=True, summary=summarize(result), result=result)
        return record(step)

    try:
        call("navigate", lambda r: f"Opened {r.get('currentUrl')}", client.navigate, url)
        extracted = call(
            "extract-data",
            lambda r: f"Found {len(r['extractedData'].get('images', []))} images",
            client.extract_data,
            data_types=["images", "links"],
            limit=10,
        )
        images = extracted.result["extractedData"].get("images", [])
        image_urls = [image["src"] for image in images[:SAMPLE_DOWNLOADS] if image.get("src")]
        if not image_urls:
            record(WorkflowStep(name="download-media", success=False, summary="No images found"))
        call(
            "download-media",
            lambda r: f"Downloaded {r['successCount']} media files",
            client.download_media,
            image_urls,
        )
        call(
            "analyze-content",
            lambda r: f"Analysed {r['analysis'].get('contentCount', 0)} items",
            client.analyze_content,
            images,
            analysis_types=["engagement"],
        )
        call(
            "generate-variants",
            lambda r: f"Generated variants for {len(r['variants'])} platforms",
            client.generate_variants,
            base_content,
        )
        call(
            "template-processor",
            lambda r: "Template processed",
            client.process_template,
            template,
            template_data if template_data is not None else DEFAULT_TEMPLATE_DATA,
            template_type="social-media",
        )
    except _StepFailed as exc:
        LOGGER.info("Workflow stopped at %s", exc)
    return steps
