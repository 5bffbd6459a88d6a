"""Playwright-backed browser session and element references."""
