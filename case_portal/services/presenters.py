"""JSON shapes returned for the core records."""
from case_portal.services.parsing import iso

def student_to_dict(student) -> dict:
    return {
        "id": str(student.student_id),
        "student_id": str(student.student_id),
        "first_name": student.first_name,
        "last_name": student.last_name,
        "name": student.full_name,
        "email": student.email_id,
        "email_id": student.email_id,
        "phone": student.contact_number,
        "contact_number": student.contact_number,
        "department": student.department,
        "semester": student.semester,
        "section": student.section,
        "admission_year": student.admission_year,
        "date_of_birth": iso(student.date_of_birth),
        "address": student.address,
        "guardian_name": student.guardian_name,
        "guardian_phone": student.guardian_phone,
        "is_active": student.is_active,
        "created_at": iso(student.created_at),
        "updated_at": iso(student.updated_at),
    }

def staff_to_dict(staff) -> dict:
    return {
        "id": staff.staff_id,
        "staff_id": staff.staff_id,
        "first_name": staff.first_name,
        "last_name": staff.last_name,
        "name": staff.full_name,
        "username": staff.username,
        "email": staff.email,
        "contact_number": staff.contact_number,
        "department": staff.department,
        "block_number": staff.block_number,
        "room_number": staff.room_number,
        "role": staff.role,
        "profile_picture": staff.profile_picture,
        "availability": staff.availability,
        "salary": float(staff.salary) if staff.salary is not None else None,
        "experience": staff.experience,
        "hire_date": iso(staff.hire_date),
        "is_active": staff.is_active,
        "created_at": iso(staff.created_at),
        "updated_at": iso(staff.updated_at),
    }

def child_link_to_dict(link) -> dict:
    return {
        "id": link.id,
        "student_id": str(link.child_student_id),
        "name": link.child_name,
        "email": link.child_email,
        "department": link.child_department,
        "semester": link.child_semester,
        "section": link.child_section,
        "is_primary": link.is_primary,
    }

def parent_to_dict(parent, children=None) -> dict:
    children = children or []
    primary = next((c for c in children if c.is_primary), children[0] if children else None)
    return {
        "id": parent.parent_id,
        "parent_id": parent.parent_id,
        "first_name": parent.first_name,
        "last_name": parent.last_name,
        "name": parent.full_name,
        "username": parent.username,
        "child_email": parent.child_email,
        "contact_number": parent.contact_number,
        "relationship": parent.relationship_type,
        "department": parent.department or (primary.child_department if primary else None),
        "is_active": parent.is_active,
        "created_at": iso(parent.created_at),
        "updated_at": iso(parent.updated_at),
        "linkedStudents": [child_link_to_dict(c) for c in children],
    }

def notification_to_dict(notification) -> dict:
    data = {
        "id": notification.id,
        "notification_id": notification.notification_id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.type,
        "priority": notification.priority,
        "is_read": notification.is_read,
        "created_at": iso(notification.created_at),
    }
    if hasattr(notification, "related_id"):
        data["related_id"] = notification.related_id
    return data

def attendance_to_dict(row, student=None) -> dict:
    data = {
        "id": row.id,
        "studentId": str(row.student_id),
        "subjectId": row.subject_id,
        "subject": row.subject,
        "date": iso(row.date),
        "status": row.status,
        "markedBy": row.marked_by,
        "createdAt": iso(row.created_at),
    }
    if student is not None:
        data.update({
            "studentName": student.full_name,
            "department": student.department,
            "semester": student.semester,
            "section": student.section,
        })
    return data

def marks_to_dict(row) -> dict:
    return {
        "id": row.id,
        "subject": row.subject,
        "exam_type": row.exam_type,
        "marks": float(row.marks),
        "max_marks": float(row.max_marks),
        "created_at": iso(row.created_at),
    }

def assignment_to_dict(row, student=None, subject=None) -> dict:
    data = {
        "id": row.id,
        "studentId": str(row.student_id),
        "subjectId": row.subject_id,
        "title": row.title,
        "description": row.description,
        "dueDate": iso(row.due_date),
        "maxMarks": row.max_marks,
        "obtainedMarks": row.obtained_marks,
        "grade": row.grade,
        "status": row.status,
        "submissionLink": row.submission_link,
        "feedback": row.feedback,
        "submittedAt": iso(row.submitted_at),
        "gradedAt": iso(row.graded_at),
        "assignedBy": row.assigned_by,
        "createdAt": iso(row.created_at),
    }
    if student is not None:
        data["studentName"] = student.full_name
        data["department"] = student.department
        data["semester"] = student.semester
        data["section"] = student.section
    if subject is not None:
        data["subjectName"] = subject.name
        data["subjectCode"] = subject.subject_code
    return data
