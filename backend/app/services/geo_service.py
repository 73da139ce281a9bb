import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import DependencyFailure

logger = logging.getLogger("app.geo")


def jobs_within_distance(db: Session, lat: float, lng: float, radius: float) -> list[str]:
    """Ids of jobs within ``radius`` miles, nearest first.

    Distance math lives in the store-side ``jobs_within_distance`` function;
    this is only the call site.
    """
    try:
        rows = db.execute(
            text("SELECT id FROM jobs_within_distance(:lat, :lng, :radius)"),
            {"lat": lat, "lng": lng, "radius": radius},
        ).fetchall()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Distance search failed: %s", exc)
        raise DependencyFailure("Distance search is unavailable") from exc
    return [row[0] for row in rows]
