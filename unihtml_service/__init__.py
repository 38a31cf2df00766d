"""
UniHTML Service - HTML to PDF conversion over HTTP.

Converts inline HTML or a remote URL to PDF by driving a headless
Chromium through Playwright.
"""

__version__ = "0.1.0"
