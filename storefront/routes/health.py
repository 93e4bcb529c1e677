from fastapi import APIRouter, Depends
from sqlmodel import Session, text
import logging

from storefront.database import get_session
from storefront.models.base import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def health_check(session: Session = Depends(get_session)):
    db_status = "ok"

    try:
        session.exec(text("SELECT 1"))
    except Exception:
        # liveness must answer even when the database is down
        logger.exception("Database ping failed")
        db_status = "failed"

    return {
        "status": "ok",
        "database": db_status,
        "timestamp": utcnow().isoformat()
    }
