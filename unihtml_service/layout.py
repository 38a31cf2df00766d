"""
Page layout normalization.

Turns the textual page fields of a request into inches, the unit
Chromium's print-to-PDF expects.

Note the asymmetry between margins and paper sizes: a bare number is
read as millimeters for a margin but as inches for a paper dimension.
Callers depend on both behaviours, so they are kept as they are.
"""

import re
from dataclasses import dataclass
from typing import Optional

from .models import PageParameters

MM_PER_INCH = 25.4

DEFAULT_MARGIN_MM = 10.0
DEFAULT_PAPER_WIDTH_IN = 8.5
DEFAULT_PAPER_HEIGHT_IN = 11.0

# (width, height) in inches
PAPER_FORMATS = {
    "letter": (8.5, 11.0),
    "legal": (8.5, 14.0),
    "tabloid": (11.0, 17.0),
    "ledger": (17.0, 11.0),
    "a0": (33.1, 46.8),
    "a1": (23.4, 33.1),
    "a2": (16.54, 23.4),
    "a3": (11.7, 16.54),
    "a4": (8.27, 11.7),
    "a5": (5.83, 8.27),
    "a6": (4.13, 5.83),
}

_NUMBER = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
_MM_PATTERN = re.compile(rf"^\s*({_NUMBER})mm")
_NUMBER_PATTERN = re.compile(rf"^\s*({_NUMBER})")


@dataclass(frozen=True)
class NormalizedLayout:
    """Page geometry in inches, ready for rendering."""

    paper_width: float
    paper_height: float
    margin_top: float
    margin_bottom: float
    margin_left: float
    margin_right: float
    landscape: bool = False
    print_background: bool = True


def _scan(pattern: re.Pattern, text: str) -> float:
    """Leading number matched by pattern, or 0.0 when there is none."""
    match = pattern.match(text)
    if not match:
        return 0.0
    return float(match.group(1))


def parse_margin(margin: str, default_mm: float) -> float:
    """
    Parse a margin into inches.

    Args:
        margin: Text such as "10mm" or "5"; bare numbers are millimeters
        default_mm: Value used when margin is empty, in millimeters

    Returns:
        Margin in inches. Unparseable input collapses to 0.0

    Example:
        >>> parse_margin("5", 10)  # 5mm
        0.19685...
    """
    if not margin:
        return default_mm / MM_PER_INCH
    value = _scan(_MM_PATTERN, margin)
    if value == 0:
        value = _scan(_NUMBER_PATTERN, margin)
    return value / MM_PER_INCH


def parse_paper_size(size: str, default_in: float) -> float:
    """
    Parse a paper dimension into inches.

    Args:
        size: Text such as "210mm" or "8.5"; bare numbers are inches
        default_in: Value used when size is empty, already in inches

    Returns:
        Dimension in inches
    """
    if not size:
        return default_in
    value = _scan(_MM_PATTERN, size)
    if value == 0:
        return _scan(_NUMBER_PATTERN, size)
    return value / MM_PER_INCH


def paper_format_defaults(page_size: Optional[str]) -> tuple[float, float]:
    """Default (width, height) for a named format, letter when unknown."""
    if page_size:
        fmt = PAPER_FORMATS.get(page_size.strip().lower())
        if fmt:
            return fmt
    return DEFAULT_PAPER_WIDTH_IN, DEFAULT_PAPER_HEIGHT_IN


def normalize_layout(page: PageParameters) -> NormalizedLayout:
    """Convert the caller's page parameters into a NormalizedLayout."""
    default_width, default_height = paper_format_defaults(page.page_size)

    return NormalizedLayout(
        paper_width=parse_paper_size(page.paper_width, default_width),
        paper_height=parse_paper_size(page.paper_height, default_height),
        margin_top=parse_margin(page.margin_top, DEFAULT_MARGIN_MM),
        margin_bottom=parse_margin(page.margin_bottom, DEFAULT_MARGIN_MM),
        margin_left=parse_margin(page.margin_left, DEFAULT_MARGIN_MM),
        margin_right=parse_margin(page.margin_right, DEFAULT_MARGIN_MM),
        landscape=page.orientation == "landscape",
    )
