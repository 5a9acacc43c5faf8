"""
Browser tests driven by Playwright.

These tests need installed browsers and a reachable target site, so the
``e2e`` marker is deselected by default; run them with ``-m e2e``.
"""
