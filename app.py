"""
=============================================================================
FACE GESTURE COUNTER - APPLICATION ENTRY POINT (app.py)
=============================================================================

WHAT THIS FILE DOES (in plain language):
----------------------------------------
This is the "front door" of the server. When you run "python app.py", a web
server starts that:

  1. Lets a client open a gesture session (blink / eyebrow / mouth counters).
  2. Accepts face landmarks for each video frame (e.g. from MediaPipe running
     in the browser) and answers with the updated counters.
  3. Optionally reads the local camera itself and feeds the session.

The URLs live in routes.py; the counting logic lives in the gestures package.

HOW TO RUN:
-----------
  - From project root:  python app.py
  - By default the app is at:  http://localhost:5000

CONFIGURATION:
--------------
  - Settings (thresholds, ports, log level) come from the .env file and config.py.
=============================================================================
"""

# ---------------------------------------------------------------------------
# Step 1: Load environment variables from .env (before anything else)
# ---------------------------------------------------------------------------
from pathlib import Path
from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent / ".env")

# ---------------------------------------------------------------------------
# Step 2: Import the web framework and our own modules
# ---------------------------------------------------------------------------
import atexit
import logging

from flask import Flask
from flask_cors import CORS
from flask_compress import Compress

from routes import register_routes
from services.session_manager import shutdown_session_manager
import config

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# ---------------------------------------------------------------------------
# Step 3: Warn the user if settings are invalid
# ---------------------------------------------------------------------------
config.warn_missing_config()


def create_app() -> Flask:
    """
    Create and configure the Flask application.

    What it does:
      - Enables CORS so a browser page served elsewhere can post frames.
      - Enables gzip compression for larger JSON responses.
      - Registers all URL routes from routes.py.

    Returns:
        The configured Flask application.
    """
    app = Flask(__name__)
    CORS(app, resources={r"/*": {"origins": "*"}})
    Compress(app)
    register_routes(app)
    return app


app = create_app()
# Stop capture threads and release cameras on interpreter exit
atexit.register(shutdown_session_manager)


if __name__ == "__main__":
    # Debug: Flask dev server with reloader. Otherwise: waitress (multi-threaded).
    if config.FLASK_DEBUG:
        app.run(host=config.FLASK_HOST, port=config.FLASK_PORT, debug=True)
    else:
        import waitress
        waitress.serve(app, host=config.FLASK_HOST, port=config.FLASK_PORT, threads=6)
