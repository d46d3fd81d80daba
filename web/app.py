"""Flask web app exposing catalog search and feed uploads."""

import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

# Load environment variables from .env file (explicitly specify path)
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

from catalog.logging_config import setup_logging  # noqa: E402
from catalog.search import ProductSearchService  # noqa: E402

from .api import SEARCH_SERVICE_KEY, api  # noqa: E402
from .config import FLASK_DEBUG, FLASK_HOST, FLASK_PORT, LOG_TO_FILE, MAX_UPLOAD_MB  # noqa: E402


def create_app(search_service: Optional[ProductSearchService] = None) -> Flask:
    """Build the app; the search service is read from the environment unless given."""
    flask_app = Flask(__name__)
    flask_app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_MB * 1024 * 1024
    flask_app.extensions[SEARCH_SERVICE_KEY] = search_service or ProductSearchService.from_env()
    flask_app.register_blueprint(api)
    return flask_app


app = create_app()


if __name__ == "__main__":
    setup_logging(level=logging.DEBUG if FLASK_DEBUG else logging.INFO, log_to_file=LOG_TO_FILE)
    app.run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG)
