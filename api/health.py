import logging

from flask import Blueprint
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from models import storage

logger = logging.getLogger(__name__)

bp = Blueprint("health", __name__)

VERSION = "1.0.0"


@bp.get("/health")
def health():
    """
    Liveness plus a database round trip
    ---
    tags:
      - Health
    responses:
      200:
        description: API and database reachable
        schema:
          type: object
          properties:
            status: { type: string, example: ok }
            database: { type: string, example: connected }
            version: { type: string, example: 1.0.0 }
      503:
        description: Database unreachable
    """
    try:
        storage.get_session().execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        storage.rollback()
        return {"status": "degraded", "database": "disconnected", "version": VERSION}, 503
    return {"status": "ok", "database": "connected", "version": VERSION}, 200
