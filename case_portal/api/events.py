import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import delete, or_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from case_portal.database import get_db
from case_portal.models.events import Event, EventCategory, EventRegistration, EventAttendee
from case_portal.schemas.events import EventCreate, EventUpdate
from case_portal.middleware.authentication import CurrentAccount, require_admin
from case_portal.services.notifier import notify_department
from case_portal.services.parsing import to_int, to_decimal, parse_date, iso

logger = logging.getLogger(__name__)

router = APIRouter()

DATE_FIELDS = ("event_date", "registration_deadline")

def event_to_dict(event: Event, category: Optional[EventCategory] = None,
                  registrations=None, attendees=None) -> dict:
    registrations = registrations or []
    attendees = attendees or []
    return {
        "id": event.id,
        "title": event.title,
        "description": event.description,
        "event_date": iso(event.event_date),
        "start_time": event.start_time,
        "end_time": event.end_time,
        "venue": event.venue,
        "organizer": event.organizer,
        "department": event.department,
        "category_id": event.category_id,
        "category": {
            "id": category.id,
            "name": category.name,
            "color": category.color,
        } if category else None,
        "max_participants": event.max_participants,
        "registration_deadline": iso(event.registration_deadline),
        "fee": float(event.fee) if event.fee is not None else None,
        "priority": event.priority,
        "is_public": event.is_public,
        "status": event.status,
        "registrations": [
            {
                "id": r.id,
                "participant_name": r.participant_name,
                "participant_email": r.participant_email,
                "participant_type": r.participant_type,
                "status": r.status,
            }
            for r in registrations
        ],
        "attendees": [
            {"id": a.id, "attendee_name": a.attendee_name, "attendee_email": a.attendee_email}
            for a in attendees
        ],
        "_count": {"registrations": len(registrations), "attendees": len(attendees)},
        "created_at": iso(event.created_at),
    }

def with_relations(query):
    return query.options(
        selectinload(Event.category),
        selectinload(Event.registrations),
        selectinload(Event.attendees),
    ).execution_options(populate_existing=True)

async def load_event(db: AsyncSession, event_id: int) -> Optional[Event]:
    result = await db.execute(with_relations(select(Event).where(Event.id == event_id)))
    return result.scalars().first()

def serialize(event: Event) -> dict:
    return event_to_dict(event, event.category, event.registrations, event.attendees)

async def upsert_category(db: AsyncSession, name: str) -> EventCategory:
    result = await db.execute(select(EventCategory).where(EventCategory.name == name))
    category = result.scalars().first()
    if not category:
        category = EventCategory(name=name, description=f"{name} events")
        db.add(category)
        await db.flush()
    return category

def apply_event_fields(event: Event, data: dict) -> None:
    for field in ("title", "description", "start_time", "end_time", "venue",
                  "organizer", "department", "priority", "status"):
        if field in data and data[field] is not None:
            setattr(event, field, data[field])

    for field in DATE_FIELDS:
        if field in data:
            value = parse_date(data[field])
            if value is not None or field != "event_date":
                setattr(event, field, value)

    if "max_participants" in data:
        event.max_participants = to_int(data["max_participants"])
    if "fee" in data:
        event.fee = to_decimal(data["fee"])
    if data.get("is_public") is not None:
        event.is_public = data["is_public"]

def parse_event_id(value) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid event ID")

@router.get("/admin/events")
async def list_events(
    category: Optional[str] = None,
    department: Optional[str] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    List events with category, registrations and attendees, ordered by date.
    """
    query = select(Event)

    if category and category != "all":
        query = query.join(EventCategory, EventCategory.id == Event.category_id).where(EventCategory.name == category)
    if department and department != "all":
        query = query.where(Event.department == department)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(or_(
            func.lower(Event.title).like(pattern),
            func.lower(Event.description).like(pattern),
            func.lower(Event.venue).like(pattern),
            func.lower(Event.organizer).like(pattern),
        ))

    result = await db.execute(with_relations(query.order_by(Event.event_date, Event.id)))
    return {"success": True, "data": [serialize(e) for e in result.scalars().all()]}

@router.post("/admin/events", status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Create an event. Staff and parents of the event's department are notified.
    """
    data = event_data.model_dump()
    if not data.get("title") or not data.get("event_date"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title and event date are required")

    try:
        category_id = to_int(data.pop("category_id", None))
        category_name = data.pop("category_name", None)
        if category_id is None and category_name:
            category_id = (await upsert_category(db, category_name)).id

        event = Event(
            title=data["title"],
            event_date=parse_date(data["event_date"]),
            category_id=category_id,
            priority="Normal",
            is_public=True,
            status="Upcoming",
        )
        apply_event_fields(event, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    db.add(event)
    await db.flush()

    event_day = event.event_date.isoformat()
    notified = await notify_department(
        db, event.department,
        f"New Event: {event.title}",
        f'A new event "{event.title}" has been scheduled for {event_day} in {event.department}. '
        f"Check the events section for more details.",
    )
    await db.commit()

    logger.info(f"Event created: {event.id}, {notified} notifications sent")
    event = await load_event(db, event.id)
    return {"success": True, "data": serialize(event)}

@router.put("/admin/events")
async def update_event(
    event_data: EventUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    data = event_data.model_dump(exclude_unset=True)
    if data.get("id") in (None, ""):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Event ID is required")

    event_id = parse_event_id(data.pop("id"))
    event = await db.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")

    try:
        category_name = data.pop("category_name", None)
        if category_name:
            event.category_id = (await upsert_category(db, category_name)).id
        elif "category_id" in data:
            event.category_id = to_int(data.pop("category_id"))
        apply_event_fields(event, data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await db.commit()

    event = await load_event(db, event_id)
    return {"success": True, "data": serialize(event)}

async def _delete_event(db: AsyncSession, event_id: int) -> dict:
    event = await db.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")

    title = event.title
    await db.execute(delete(EventRegistration).where(EventRegistration.event_id == event_id))
    await db.execute(delete(EventAttendee).where(EventAttendee.event_id == event_id))
    await db.execute(delete(Event).where(Event.id == event_id))
    await db.commit()

    logger.info(f"Event deleted: {event_id}")
    return {"success": True, "message": f'Event "{title}" has been deleted successfully.'}

@router.delete("/admin/events")
async def delete_event_by_query(
    eventId: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    if not eventId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Event ID is required")
    return await _delete_event(db, parse_event_id(eventId))

@router.delete("/admin/events/{event_id}")
async def delete_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    return await _delete_event(db, parse_event_id(event_id))

@router.get("/events")
async def list_public_events(db: AsyncSession = Depends(get_db)):
    """
    Public upcoming events, soonest first.
    """
    result = await db.execute(
        with_relations(
            select(Event)
            .where(Event.is_public.is_(True), Event.event_date >= date.today())
            .order_by(Event.event_date, Event.id)
        )
    )
    return {"success": True, "data": [serialize(e) for e in result.scalars().all()]}
