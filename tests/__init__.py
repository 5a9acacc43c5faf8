"""
Test suite for e2e_kit and the demo site.

This package contains:
- unit/: framework logic with Playwright and HTTP replaced by doubles
- integration/: the demo site and the API helper over real HTTP
- e2e/: browser tests (marker ``e2e``, deselected by default)
"""
