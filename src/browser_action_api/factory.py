"""Factories for constructing components from configuration."""

from __future__ import annotations

from typing import Callable, Optional

from .browser.base import BrowserTarget, Viewport
from .browser.playwright_session import PlaywrightBrowserTarget
from .config import BrowserConfig, ServiceConfig
from .executor.actions import ActionExecutor
from .session.manager import SessionManager
from .session.serializer import ActionSerializer


def build_browser(config: BrowserConfig) -> PlaywrightBrowserTarget:
    return PlaywrightBrowserTarget(config)


def build_session_manager(
    config: BrowserConfig,
    target_factory: Optional[Callable[[], BrowserTarget]] = None,
) -> SessionManager:
    factory = target_factory or (lambda: build_browser(config))
    viewport = Viewport(width=config.viewport_width, height=config.viewport_height)
    return SessionManager(factory, viewport=viewport)


def build_executor(config: ServiceConfig) -> ActionExecutor:
    return ActionExecutor(config.browser, config.download)


def build_serializer(config: ServiceConfig, sessions: SessionManager) -> ActionSerializer:
    return ActionSerializer(sessions, build_executor(config))
