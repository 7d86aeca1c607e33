"""Browser adapters."""

from site_monitor.adapters.browser.playwright_browser import PlaywrightLauncher, PlaywrightPageSession

__all__ = ["PlaywrightLauncher", "PlaywrightPageSession"]
