"""Serve the demo site on the ``local`` environment's address: ``python -m demo_site``."""

import logging
import os

from demo_site import create_app

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = create_app(os.getenv("FLASK_ENV", "development"))

if __name__ == "__main__":
    app.run(
        host=os.getenv("DEMO_HOST", "127.0.0.1"),
        port=int(os.getenv("DEMO_PORT", "3000")),
        use_reloader=False,
    )
