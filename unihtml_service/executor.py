"""
Action Executor Module

Runs an action sequence against one browser session with:
- A single deadline covering session start through the final render;
  session teardown is not counted against it
- Strictly sequential steps, no retries
- Errors wrapped with the failing stage
- Session teardown on every exit path
"""

import asyncio
import logging
from contextlib import AsyncExitStack
from typing import Optional

from .browser import BrowserSession, SessionFactory
from .config import DEFAULT_TIMEOUT_MS
from .errors import (
    ConversionError,
    DeadlineExceededError,
    SessionAcquisitionError,
    StepExecutionError,
)
from .tasks import (
    RENDER_STAGE,
    Action,
    ActionSequence,
    Delay,
    Navigate,
    Render,
    WaitReady,
    WaitVisible,
)

logger = logging.getLogger(__name__)

SESSION_STAGE = "start browser"


def effective_timeout_ms(timeout_ms: Optional[int], default_ms: int = DEFAULT_TIMEOUT_MS) -> int:
    """Requested timeout when positive, otherwise the default."""
    if timeout_ms is not None and timeout_ms > 0:
        return timeout_ms
    return default_ms


class ExecutionController:
    """
    Executes one action sequence within one deadline.

    A controller is created per conversion and owns exactly one browser
    session for its lifetime.
    """

    def __init__(self, session_factory: SessionFactory, timeout_ms: int):
        self.session_factory = session_factory
        self.timeout_ms = timeout_ms

    async def run(self, actions: ActionSequence) -> bytes:
        """
        Run actions in order and return the rendered PDF.

        Args:
            actions: Sequence built by tasks.build_actions()

        Returns:
            PDF bytes from the Render step

        Raises:
            SessionAcquisitionError: Browser could not be started
            DeadlineExceededError: Deadline expired, no bytes are returned
            StepExecutionError: A step failed; later steps are skipped
        """
        stage = SESSION_STAGE
        pdf_bytes: Optional[bytes] = None

        # Teardown runs outside the deadline scope
        async with AsyncExitStack() as stack:
            try:
                async with asyncio.timeout(self.timeout_ms / 1000):
                    session = await self._acquire(stack)
                    for action in actions:
                        stage = action.stage
                        result = await self._perform(session, action)
                        if isinstance(action, Render):
                            pdf_bytes = result
            except TimeoutError as e:
                logger.error(f"Conversion deadline of {self.timeout_ms}ms exceeded during: {stage}")
                raise DeadlineExceededError(stage, self.timeout_ms, e) from e

        if pdf_bytes is None:
            raise StepExecutionError(RENDER_STAGE, message="action sequence produced no PDF")
        return pdf_bytes

    async def _acquire(self, stack: AsyncExitStack) -> BrowserSession:
        try:
            return await stack.enter_async_context(self.session_factory(self.timeout_ms))
        except ConversionError:
            raise
        except Exception as e:
            raise SessionAcquisitionError(f"{SESSION_STAGE}: {e}") from e

    async def _perform(self, session: BrowserSession, action: Action) -> Optional[bytes]:
        logger.debug(f"Step: {action.stage}")
        try:
            if isinstance(action, Navigate):
                await session.navigate(action.target)
            elif isinstance(action, WaitReady):
                await session.wait_until_present(action.selector, action.strategy)
            elif isinstance(action, WaitVisible):
                await session.wait_until_visible(action.selector, action.strategy)
            elif isinstance(action, Delay):
                await session.delay(action.duration_ms)
            elif isinstance(action, Render):
                return await session.render_to_pdf(action.layout)
            else:
                raise TypeError(f"Unknown action: {action!r}")
        except TimeoutError as e:
            raise DeadlineExceededError(action.stage, self.timeout_ms, e) from e
        except ConversionError:
            raise
        except Exception as e:
            raise StepExecutionError(action.stage, e) from e
        return None
