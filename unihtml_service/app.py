"""
UniHTML Service - FastAPI application for HTML to PDF conversion.

Endpoints:
- GET /health   liveness probe, plain "OK"
- POST /v1/pdf  convert inline HTML or a URL to PDF
"""

import logging
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

from . import __version__
from .browser import SessionFactory, default_session_factory
from .config import get_settings
from .converter import convert_to_pdf
from .errors import ConversionError, RequestDecodeError
from .models import decode_request

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="UniHTML Service",
    version=__version__,
    description="HTML to PDF conversion using Playwright/Chromium"
)

# Browser session factory, chosen once per process
_session_factory: Optional[SessionFactory] = None


def get_session_factory() -> SessionFactory:
    """Return the process-wide session factory, creating it on first use."""
    global _session_factory
    if _session_factory is None:
        _session_factory = default_session_factory(get_settings())
    return _session_factory


# ============================================================================
# Startup Event
# ============================================================================

@app.on_event("startup")
async def select_browser_on_startup():
    """Resolve the browser binary strategy for this platform once."""
    settings = get_settings()
    logger.info(
        f"UniHTML Service starting on :{settings.port} "
        f"(browser_source={settings.browser_source}, default_timeout={settings.default_timeout_ms}ms)"
    )
    get_session_factory()


# ============================================================================
# Health Check Endpoint
# ============================================================================

@app.get("/health", response_class=PlainTextResponse)
async def health_check() -> PlainTextResponse:
    """Liveness probe for container orchestration."""
    return PlainTextResponse("OK")


# ============================================================================
# PDF Generation Endpoint
# ============================================================================

@app.post("/v1/pdf")
async def generate_pdf(request: Request) -> Response:
    """
    Convert HTML content or a URL to PDF.

    Returns:
        201 with the PDF body and an X-Job-ID header
        400 with a plain-text message if the body cannot be decoded
        500 with a plain-text message naming the failing stage
    """
    logger.info("Received PDF conversion request")

    body = await request.body()
    try:
        conversion = decode_request(body)
    except RequestDecodeError as e:
        logger.error(f"Error decoding request: {e}")
        return PlainTextResponse(str(e), status_code=400)

    try:
        pdf_bytes = await convert_to_pdf(conversion, session_factory=get_session_factory())
    except ConversionError as e:
        logger.error(f"Error converting to PDF: {e}")
        return PlainTextResponse(str(e), status_code=500)
    except Exception as e:
        logger.exception(f"Unexpected error converting to PDF: {e}")
        return PlainTextResponse(f"convert to pdf: {e}", status_code=500)

    logger.info(f"Successfully generated PDF ({len(pdf_bytes)} bytes)")

    return Response(
        content=pdf_bytes,
        status_code=201,
        media_type="application/pdf",
        headers={"X-Job-ID": f"job-{int(time.time())}"}
    )
