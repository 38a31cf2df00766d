"""
HTML to PDF conversion entry point.

convert_to_pdf() is stateless: everything it creates (temporary file,
browser session, action list) lives and dies inside one call.
"""

import logging
from typing import Optional

from .browser import SessionFactory, default_session_factory
from .config import get_settings
from .content import resolve_target
from .executor import ExecutionController, effective_timeout_ms
from .layout import normalize_layout
from .models import ConversionRequest
from .tasks import build_actions

logger = logging.getLogger(__name__)


async def convert_to_pdf(
    request: ConversionRequest,
    session_factory: Optional[SessionFactory] = None,
) -> bytes:
    """
    Convert a request to PDF bytes.

    Args:
        request: Decoded conversion request
        session_factory: Browser session factory; defaults to Playwright/Chromium

    Returns:
        PDF bytes, never a partial buffer

    Raises:
        ConversionError: Any failure, wrapped with the failing stage
    """
    settings = get_settings()
    if session_factory is None:
        session_factory = default_session_factory(settings)

    layout = normalize_layout(request.page)
    timeout_ms = effective_timeout_ms(request.timeout_ms, settings.default_timeout_ms)

    with resolve_target(request.source) as target:
        actions = build_actions(target, layout, request.render)
        logger.info(
            f"Converting {'URL' if request.source.is_remote else 'inline HTML'} "
            f"({len(actions)} steps, timeout={timeout_ms}ms)"
        )
        controller = ExecutionController(session_factory, timeout_ms)
        return await controller.run(actions)
