"""
Integration tests against the demo site.

Tests use the Flask test client or a live server thread and demonstrate:
- Form and JSON endpoint testing
- Negative testing of login and signup
- The API helper against a real HTTP server
"""
