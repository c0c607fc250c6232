import logging

from dotenv import load_dotenv

# Config reads the environment at import time, so .env must load first
load_dotenv()

from runclub import create_app
from runclub.config import LOG_LEVEL
from runclub.extensions import db
from runclub.helpers.account import ensure_primary_admin
from runclub.routes import register_blueprints

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

api = create_app()

# Register all Blueprints (auth, entries, events, admin)
register_blueprints(api)

def init_db():
    """Ensure DB tables exist and the primary admin is seeded."""
    db.create_all()
    ensure_primary_admin()

# Run DB bootstrap once at startup
with api.app_context():
    init_db()

if __name__ == "__main__":
    api.run(debug=True)
