"""
Demo target site: a small login/signup web app the browser suite can run
against locally (the ``local`` environment, ``http://localhost:3000``).

Key Concepts Demonstrated:
- Application factory pattern (create_app)
- Flask extension initialisation (SQLAlchemy)
- Blueprint-based route registration
- Seed data created at startup
"""

from __future__ import annotations

import logging

from flask import Flask
from flask_sqlalchemy import SQLAlchemy

from demo_site.config import get_config

db = SQLAlchemy()

logger = logging.getLogger(__name__)


def create_app(config_name: str | None = None, seed_users: list[dict] | None = None) -> Flask:
    """
    Create and configure the demo site.

    Args:
        config_name: Configuration environment name.  If None, uses the
            FLASK_ENV environment variable.
        seed_users: Accounts to create at startup (``name``, ``email``,
            ``password``).  Defaults to the config's ``SEED_USERS``.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    config_class = get_config(config_name)
    app.config.from_object(config_class)
    logger.info("Creating demo site with config: %s", config_class.__name__)

    db.init_app(app)

    # Imported here because the route modules import ``db`` from this package.
    from demo_site.models import seed_users as create_seed_users
    from demo_site.routes.api import api_bp
    from demo_site.routes.views import views_bp

    app.register_blueprint(api_bp, url_prefix="/api")
    app.register_blueprint(views_bp)

    with app.app_context():
        db.create_all()
        created = create_seed_users(
            seed_users if seed_users is not None else app.config["SEED_USERS"]
        )
        logger.info("Demo site ready with %d seeded users", created)

    return app
