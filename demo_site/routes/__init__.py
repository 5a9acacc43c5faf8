"""
Routes package for the demo site.

- api: JSON endpoints (health check, token login)
- views: HTML pages (login, signup, home, logout)
"""
