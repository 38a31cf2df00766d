"""
Build the ordered browser action sequence for a conversion.

The sequence is a tuple of small tagged actions. Its order is fixed here
and never changed by the executor:

    Navigate -> WaitReady(body) -> [Delay] -> WaitReady* -> WaitVisible* -> Render
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Tuple, Union

from .layout import NormalizedLayout
from .models import RenderPolicy, SelectorSpec

ROOT_SELECTOR = "body"
RENDER_STAGE = "print to pdf"


class SelectorStrategy(str, Enum):
    """How a wait selector is matched against the DOM."""

    QUERY = "query"    # CSS query selector
    ID = "id"          # element id
    SEARCH = "search"  # loose text / attribute / selector search


def map_strategy(by: str) -> SelectorStrategy:
    """
    Map a request 'by' tag to a strategy.

    'xpath' maps to SEARCH, which is a loose search and not an XPath
    evaluator. Unknown tags fall back to QUERY.
    """
    if by == "id":
        return SelectorStrategy.ID
    if by == "xpath":
        return SelectorStrategy.SEARCH
    return SelectorStrategy.QUERY


@dataclass(frozen=True)
class Navigate:
    target: str

    @property
    def stage(self) -> str:
        return f"navigate {self.target}"


@dataclass(frozen=True)
class WaitReady:
    selector: str
    strategy: SelectorStrategy = SelectorStrategy.QUERY

    @property
    def stage(self) -> str:
        return f"wait ready {self.selector!r} by {self.strategy.value}"


@dataclass(frozen=True)
class WaitVisible:
    selector: str
    strategy: SelectorStrategy = SelectorStrategy.QUERY

    @property
    def stage(self) -> str:
        return f"wait visible {self.selector!r} by {self.strategy.value}"


@dataclass(frozen=True)
class Delay:
    duration_ms: int

    @property
    def stage(self) -> str:
        return f"delay {self.duration_ms}ms"


@dataclass(frozen=True)
class Render:
    layout: NormalizedLayout

    @property
    def stage(self) -> str:
        return RENDER_STAGE


Action = Union[Navigate, WaitReady, WaitVisible, Delay, Render]
ActionSequence = Tuple[Action, ...]


def _wait_ready(spec: SelectorSpec) -> WaitReady:
    return WaitReady(spec.selector, map_strategy(spec.by))


def _wait_visible(spec: SelectorSpec) -> WaitVisible:
    return WaitVisible(spec.selector, map_strategy(spec.by))


def build_actions(target: str, layout: NormalizedLayout, render: RenderPolicy) -> ActionSequence:
    """
    Build the action sequence for one conversion.

    Args:
        target: URI to navigate to
        layout: Normalized page layout for the final render
        render: Caller's delay and wait selectors

    Returns:
        Tuple of actions in execution order, always ending with Render
    """
    actions = [
        Navigate(target),
        WaitReady(ROOT_SELECTOR, SelectorStrategy.QUERY),
    ]

    if render.wait_time_ms > 0:
        actions.append(Delay(render.wait_time_ms))

    actions.extend(_wait_ready(spec) for spec in render.wait_ready)
    actions.extend(_wait_visible(spec) for spec in render.wait_visible)

    # Background graphics are always printed, whatever the caller asked for
    if not layout.print_background:
        layout = replace(layout, print_background=True)
    actions.append(Render(layout))

    return tuple(actions)
