import logging
from datetime import datetime

from alembic import command
from alembic.config import Config
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from case_portal.config import settings
from case_portal.database import get_db
from case_portal.models.events import Event
from case_portal.models.notes import Note, Feedback
from case_portal.models.notifications import Notification
from case_portal.models.parents import Parent
from case_portal.models.staff import Staff
from case_portal.models.students import Student
from case_portal.middleware.authentication import CurrentAccount, require_admin
from case_portal.services.parsing import iso
from case_portal.services.seed import seed_database

logger = logging.getLogger(__name__)

router = APIRouter()

# (label, key column, timestamp column) per domain
DOMAINS = [
    ("Staff Management", Staff.staff_id, Staff.updated_at),
    ("Student Management", Student.student_id, Student.updated_at),
    ("Parent Portal", Parent.parent_id, Parent.updated_at),
    ("Notes Repository", Note.id, Note.updated_at),
    ("Events Management", Event.id, Event.updated_at),
    ("Feedback System", Feedback.id, Feedback.created_at),
    ("Notifications System", Notification.id, Notification.created_at),
]

@router.get("/admin/database/health")
async def database_health(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Connectivity check with record counts and the latest change per domain.
    """
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {str(e)}")
        return {"connected": False, "stats": [], "timestamp": datetime.utcnow().isoformat()}

    stats = []
    for name, key, stamp in DOMAINS:
        result = await db.execute(select(func.count(key), func.max(stamp)))
        count, last_updated = result.one()
        stats.append({
            "name": name,
            "status": True,
            "recordCount": count or 0,
            "lastUpdated": iso(last_updated),
        })

    return {"connected": True, "stats": stats, "timestamp": datetime.utcnow().isoformat()}

def apply_migrations(connection) -> str:
    """
    Upgrade to head on the given connection. A schema built by the startup
    create_all has no version row yet, so it is stamped instead.
    """
    config = Config(settings.ALEMBIC_INI)
    config.attributes["skip_logging_config"] = True
    config.attributes["connection"] = connection

    tables = inspect(connection).get_table_names()
    if "alembic_version" not in tables and Notification.__tablename__ in tables:
        command.stamp(config, "head")
        return "stamped"

    command.upgrade(config, "head")
    return "upgraded"

@router.post("/admin/database/migrate")
async def migrate_database(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Apply pending Alembic migrations.
    """
    logger.info(f"Migration requested by {current_user.id}")
    try:
        connection = await db.connection()
        outcome = await connection.run_sync(apply_migrations)
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Migration failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Migration failed. Check the server logs for details."
        )

    if outcome == "stamped":
        message = "Existing schema stamped at the latest revision"
    else:
        message = "Database migrated to the latest revision"
    return {"success": True, "message": message, "outcome": outcome}

@router.post("/admin/database/seed")
async def seed(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    created = await seed_database(db)
    return {"success": True, "message": "Database seeded successfully", "created": created}
