import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Form, File, UploadFile
from sqlalchemy import or_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from case_portal.database import get_db
from case_portal.models.notes import Note, Feedback
from case_portal.schemas.notes import FeedbackCreate
from case_portal.middleware.authentication import CurrentAccount, require_admin
from case_portal.services.cloudinary import upload_note_file
from case_portal.services.exports import parse_semester
from case_portal.services.parsing import clean_str, iso

logger = logging.getLogger(__name__)

router = APIRouter()

def note_to_dict(note: Note) -> dict:
    return {
        "id": note.id,
        "title": note.title,
        "description": note.description,
        "subject": note.subject,
        "department": note.department,
        "semester": note.semester,
        "file_url": note.file_url,
        "file_name": note.file_name,
        "uploaded_by": note.uploaded_by,
        "created_at": iso(note.created_at),
    }

def feedback_to_dict(feedback: Feedback) -> dict:
    return {
        "id": feedback.id,
        "name": feedback.name,
        "email": feedback.email,
        "category": feedback.category,
        "message": feedback.message,
        "rating": feedback.rating,
        "created_at": iso(feedback.created_at),
    }

@router.get("/notes")
async def list_notes(
    subject: Optional[str] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    """
    Active notes, newest first. Open to everyone.
    """
    query = select(Note).where(Note.is_active.is_(True))

    if subject and subject != "all":
        query = query.where(Note.subject == subject)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(or_(
            func.lower(Note.title).like(pattern),
            func.lower(Note.description).like(pattern),
            func.lower(Note.subject).like(pattern),
        ))

    result = await db.execute(query.order_by(Note.created_at.desc(), Note.id.desc()))
    return {"success": True, "notes": [note_to_dict(n) for n in result.scalars().all()]}

@router.post("/admin/notes", status_code=status.HTTP_201_CREATED)
async def create_note(
    title: str = Form(...),
    description: Optional[str] = Form(None),
    subject: Optional[str] = Form(None),
    department: Optional[str] = Form(None),
    semester: Optional[str] = Form(None),
    file_url: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Publish a note. An attached file is uploaded to Cloudinary.
    """
    if not title.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title is required")

    file_name = None
    if file and file.filename:
        file_url = await upload_note_file(file)
        file_name = file.filename

    note = Note(
        title=title.strip(),
        description=clean_str(description),
        subject=clean_str(subject),
        department=clean_str(department),
        semester=parse_semester(semester, None),
        file_url=clean_str(file_url),
        file_name=file_name,
        uploaded_by=current_user.display_name,
        is_active=True,
    )
    db.add(note)
    await db.commit()

    logger.info(f"Note created: {note.id}")
    return {"success": True, "note": note_to_dict(note)}

@router.delete("/admin/notes/{note_id}")
async def delete_note(
    note_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    """
    Hide a note from the repository. The row is kept.
    """
    note = await db.get(Note, note_id)
    if not note or not note.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")

    note.is_active = False
    await db.commit()

    return {"success": True, "message": "Note deleted successfully"}

@router.post("/feedback", status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    feedback_data: FeedbackCreate,
    db: AsyncSession = Depends(get_db)
):
    feedback = Feedback(
        name=feedback_data.name.strip(),
        email=feedback_data.email,
        category=feedback_data.category or "General",
        message=feedback_data.message.strip(),
        rating=feedback_data.rating,
    )
    db.add(feedback)
    await db.commit()

    return {"success": True, "message": "Thank you for your feedback!", "id": feedback.id}

@router.get("/admin/feedback")
async def list_feedback(
    category: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentAccount = Depends(require_admin)
):
    query = select(Feedback)
    if category and category != "all":
        query = query.where(Feedback.category == category)

    result = await db.execute(query.order_by(Feedback.created_at.desc(), Feedback.id.desc()))
    return {"success": True, "feedback": [feedback_to_dict(f) for f in result.scalars().all()]}
