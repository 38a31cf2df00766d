"""
Resolve the URI the browser navigates to.

Remote sources are used as-is. Inline HTML is written to a temporary
file that lives exactly as long as the resolve_target() block.
"""

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .errors import ResourceCreationError
from .models import ContentSource

logger = logging.getLogger(__name__)

TEMP_PREFIX = "unihtml-"
TEMP_SUFFIX = ".html"


@contextmanager
def resolve_target(source: ContentSource) -> Iterator[str]:
    """
    Yield a navigable URI for the source.

    Args:
        source: Inline content or remote URL

    Yields:
        The remote URL unchanged, or a file:// URI of a temporary HTML file

    Raises:
        ResourceCreationError: If the temporary file cannot be created or written
    """
    if source.is_remote:
        yield source.url
        return

    try:
        fd, name = tempfile.mkstemp(prefix=TEMP_PREFIX, suffix=TEMP_SUFFIX)
    except OSError as e:
        raise ResourceCreationError(f"create temp HTML: {e}") from e

    path = Path(name)
    try:
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(source.content)
        except OSError as e:
            raise ResourceCreationError(f"write HTML: {e}") from e

        logger.debug(f"Wrote {len(source.content)} bytes of HTML to {path}")
        yield path.as_uri()
    finally:
        path.unlink(missing_ok=True)
