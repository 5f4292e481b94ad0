"""initial schema

Revision ID: 0001
Revises:
Create Date: 2025-01-15 09:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def timestamps(updated=True):
    columns = [sa.Column("created_at", sa.DateTime(), server_default=sa.func.now())]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()))
    return columns


def upgrade():
    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("priority", sa.String(20), nullable=False),
        sa.Column("target_portals", sa.JSON(), nullable=False),
        sa.Column("recipient_count", sa.Integer()),
        sa.Column("created_by", sa.Integer()),
        *timestamps(updated=False),
    )
    op.create_index("ix_notifications_id", "notifications", ["id"])

    op.create_table(
        "staff",
        sa.Column("staff_id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("username", sa.String(100), nullable=False, unique=True),
        sa.Column("password_hash", sa.Text()),
        sa.Column("email", sa.String(255), unique=True),
        sa.Column("contact_number", sa.String(50)),
        sa.Column("department", sa.String(100)),
        sa.Column("block_number", sa.String(20)),
        sa.Column("room_number", sa.String(20)),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("profile_picture", sa.Text()),
        sa.Column("availability", sa.String(50)),
        sa.Column("salary", sa.Numeric(12, 2)),
        sa.Column("experience", sa.Integer()),
        sa.Column("hire_date", sa.Date()),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *timestamps(),
    )
    op.create_index("ix_staff_staff_id", "staff", ["staff_id"])
    op.create_index("ix_staff_department", "staff", ["department"])

    op.create_table(
        "staff_attendance",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("staff_id", sa.Integer(), sa.ForeignKey("staff.staff_id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        *timestamps(updated=False),
    )
    op.create_index("ix_staff_attendance_staff_id", "staff_attendance", ["staff_id"])

    op.create_table(
        "staff_leave",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("staff_id", sa.Integer(), sa.ForeignKey("staff.staff_id", ondelete="CASCADE"), nullable=False),
        sa.Column("leave_type", sa.String(50), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("reason", sa.Text()),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("applied_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_staff_leave_staff_id", "staff_leave", ["staff_id"])

    op.create_table(
        "staff_notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("staff_id", sa.Integer(), sa.ForeignKey("staff.staff_id", ondelete="CASCADE"), nullable=False),
        sa.Column("notification_id", sa.Integer(), sa.ForeignKey("notifications.id", ondelete="CASCADE")),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(50)),
        sa.Column("priority", sa.String(20)),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        *timestamps(updated=False),
    )
    op.create_index("ix_staff_notifications_staff_id", "staff_notifications", ["staff_id"])
    op.create_index("ix_staff_notifications_notification_id", "staff_notifications", ["notification_id"])

    op.create_table(
        "students",
        sa.Column("student_id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email_id", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.Text()),
        sa.Column("contact_number", sa.String(50)),
        sa.Column("department", sa.String(100)),
        sa.Column("semester", sa.Integer()),
        sa.Column("section", sa.String(20)),
        sa.Column("admission_year", sa.Integer()),
        sa.Column("date_of_birth", sa.Date()),
        sa.Column("address", sa.Text()),
        sa.Column("guardian_name", sa.String(255)),
        sa.Column("guardian_phone", sa.String(50)),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *timestamps(),
    )
    op.create_index("ix_students_department", "students", ["department"])

    op.create_table(
        "subjects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("subject_code", sa.String(50), nullable=False, unique=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("credits", sa.Integer()),
        *timestamps(updated=False),
    )
    op.create_index("ix_subjects_id", "subjects", ["id"])

    op.create_table(
        "student_attendance",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("student_id", sa.BigInteger(), sa.ForeignKey("students.student_id", ondelete="CASCADE"), nullable=False),
        sa.Column("subject_id", sa.Integer(), sa.ForeignKey("subjects.id")),
        sa.Column("subject", sa.String(150)),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("marked_by", sa.String(100)),
        *timestamps(updated=False),
        sa.CheckConstraint("status IN ('Present', 'Absent', 'Late', 'Excused')", name="check_attendance_status"),
    )
    op.create_index("ix_student_attendance_student_id", "student_attendance", ["student_id"])

    op.create_table(
        "student_marks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("student_id", sa.BigInteger(), sa.ForeignKey("students.student_id", ondelete="CASCADE"), nullable=False),
        sa.Column("subject", sa.String(150), nullable=False),
        sa.Column("exam_type", sa.String(50)),
        sa.Column("marks", sa.Numeric(6, 2), nullable=False),
        sa.Column("max_marks", sa.Numeric(6, 2), nullable=False),
        *timestamps(updated=False),
        sa.CheckConstraint("marks >= 0", name="check_marks_positive"),
    )
    op.create_index("ix_student_marks_student_id", "student_marks", ["student_id"])

    op.create_table(
        "internal_marks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("student_id", sa.BigInteger(), sa.ForeignKey("students.student_id", ondelete="CASCADE"), nullable=False),
        sa.Column("subject", sa.String(150), nullable=False),
        sa.Column("academic_year", sa.String(20), nullable=False),
        sa.Column("internal1_marks", sa.Numeric(5, 2), nullable=False),
        sa.Column("internal2_marks", sa.Numeric(5, 2), nullable=False),
        sa.Column("assignment_marks", sa.Numeric(5, 2), nullable=False),
        sa.Column("total_marks", sa.Integer(), nullable=False),
        *timestamps(),
        sa.UniqueConstraint("student_id", "subject", "academic_year", name="uix_internal_marks_student_subject_year"),
        sa.CheckConstraint("internal1_marks >= 0 AND internal1_marks <= 20", name="check_internal1_range"),
        sa.CheckConstraint("internal2_marks >= 0 AND internal2_marks <= 20", name="check_internal2_range"),
        sa.CheckConstraint("assignment_marks >= 0 AND assignment_marks <= 10", name="check_assignment_range"),
    )
    op.create_index("ix_internal_marks_student_id", "internal_marks", ["student_id"])

    op.create_table(
        "student_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("student_id", sa.BigInteger(), sa.ForeignKey("students.student_id", ondelete="CASCADE"), nullable=False),
        sa.Column("subject_id", sa.Integer(), sa.ForeignKey("subjects.id")),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("max_marks", sa.Integer()),
        sa.Column("obtained_marks", sa.Integer()),
        sa.Column("grade", sa.String(5)),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("submission_link", sa.Text()),
        sa.Column("feedback", sa.Text()),
        sa.Column("submitted_at", sa.DateTime()),
        sa.Column("graded_at", sa.DateTime()),
        sa.Column("assigned_by", sa.Integer()),
        *timestamps(updated=False),
    )
    op.create_index("ix_student_assignments_student_id", "student_assignments", ["student_id"])

    op.create_table(
        "student_notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("student_id", sa.BigInteger(), sa.ForeignKey("students.student_id", ondelete="CASCADE"), nullable=False),
        sa.Column("notification_id", sa.Integer(), sa.ForeignKey("notifications.id", ondelete="CASCADE")),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(50)),
        sa.Column("priority", sa.String(20)),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("related_id", sa.Integer()),
        *timestamps(updated=False),
    )
    op.create_index("ix_student_notifications_student_id", "student_notifications", ["student_id"])
    op.create_index("ix_student_notifications_notification_id", "student_notifications", ["notification_id"])

    op.create_table(
        "parents",
        sa.Column("parent_id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("username", sa.String(100), nullable=False, unique=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("child_email", sa.String(255)),
        sa.Column("contact_number", sa.String(50)),
        sa.Column("relationship", sa.String(50)),
        sa.Column("department", sa.String(100)),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *timestamps(),
    )
    op.create_index("ix_parents_parent_id", "parents", ["parent_id"])

    op.create_table(
        "parent_children",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("parents.parent_id", ondelete="CASCADE"), nullable=False),
        sa.Column("child_student_id", sa.BigInteger(), sa.ForeignKey("students.student_id", ondelete="CASCADE"), nullable=False),
        sa.Column("child_name", sa.String(255)),
        sa.Column("child_email", sa.String(255)),
        sa.Column("child_department", sa.String(100)),
        sa.Column("child_semester", sa.Integer()),
        sa.Column("child_section", sa.String(20)),
        sa.Column("is_primary", sa.Boolean()),
        *timestamps(updated=False),
        sa.UniqueConstraint("parent_id", "child_student_id", name="uix_parent_child"),
    )
    op.create_index("ix_parent_children_parent_id", "parent_children", ["parent_id"])
    op.create_index("ix_parent_children_child_student_id", "parent_children", ["child_student_id"])
    op.create_index("ix_parent_children_child_department", "parent_children", ["child_department"])

    op.create_table(
        "parent_notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("parent_id", sa.Integer(), sa.ForeignKey("parents.parent_id", ondelete="CASCADE"), nullable=False),
        sa.Column("notification_id", sa.Integer(), sa.ForeignKey("notifications.id", ondelete="CASCADE")),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(50)),
        sa.Column("priority", sa.String(20)),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        *timestamps(updated=False),
    )
    op.create_index("ix_parent_notifications_parent_id", "parent_notifications", ["parent_id"])
    op.create_index("ix_parent_notifications_notification_id", "parent_notifications", ["notification_id"])

    op.create_table(
        "event_categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("description", sa.Text()),
        sa.Column("color", sa.String(20)),
        *timestamps(updated=False),
    )

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(20)),
        sa.Column("end_time", sa.String(20)),
        sa.Column("venue", sa.String(255)),
        sa.Column("organizer", sa.String(255)),
        sa.Column("department", sa.String(100)),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("event_categories.id", ondelete="SET NULL")),
        sa.Column("max_participants", sa.Integer()),
        sa.Column("registration_deadline", sa.Date()),
        sa.Column("fee", sa.Numeric(10, 2)),
        sa.Column("priority", sa.String(20)),
        sa.Column("is_public", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(20)),
        *timestamps(),
    )
    op.create_index("ix_events_event_date", "events", ["event_date"])

    op.create_table(
        "event_registrations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("participant_name", sa.String(255), nullable=False),
        sa.Column("participant_email", sa.String(255)),
        sa.Column("participant_type", sa.String(20)),
        sa.Column("status", sa.String(20)),
        sa.Column("registered_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_event_registrations_event_id", "event_registrations", ["event_id"])

    op.create_table(
        "event_attendees",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("attendee_name", sa.String(255), nullable=False),
        sa.Column("attendee_email", sa.String(255)),
        sa.Column("checked_in_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_event_attendees_event_id", "event_attendees", ["event_id"])

    op.create_table(
        "notes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("subject", sa.String(150)),
        sa.Column("department", sa.String(100)),
        sa.Column("semester", sa.Integer()),
        sa.Column("file_url", sa.Text()),
        sa.Column("file_name", sa.String(255)),
        sa.Column("uploaded_by", sa.String(150)),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *timestamps(),
    )
    op.create_index("ix_notes_subject", "notes", ["subject"])

    op.create_table(
        "feedback",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("email", sa.String(255)),
        sa.Column("category", sa.String(50)),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("rating", sa.Integer()),
        *timestamps(updated=False),
    )

    op.create_table(
        "timetables",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("department", sa.String(100)),
        sa.Column("semester", sa.Integer()),
        sa.Column("section", sa.String(20)),
        sa.Column("academic_year", sa.String(20)),
        sa.Column("faculty_id", sa.Integer()),
        sa.Column("faculty_name", sa.String(255)),
        sa.Column("effective_from", sa.Date(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *timestamps(),
    )
    op.create_index("ix_timetables_department", "timetables", ["department"])

    op.create_table(
        "timetable_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("timetable_id", sa.String(64), sa.ForeignKey("timetables.id", ondelete="CASCADE"), nullable=False),
        sa.Column("day", sa.String(20), nullable=False),
        sa.Column("period", sa.Integer(), nullable=False),
        sa.Column("time", sa.String(50)),
        sa.Column("subject", sa.String(150), nullable=False),
        sa.Column("faculty", sa.String(255)),
        sa.Column("room", sa.String(50)),
        sa.Column("type", sa.String(20), nullable=False),
        *timestamps(updated=False),
        sa.CheckConstraint("type IN ('lecture', 'lab', 'tutorial', 'practical')", name="check_entry_type"),
    )
    op.create_index("ix_timetable_entries_timetable_id", "timetable_entries", ["timetable_id"])

    op.create_table(
        "timetable_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("timetable_id", sa.String(64), sa.ForeignKey("timetables.id", ondelete="CASCADE"), nullable=False),
        sa.Column("assignment_type", sa.String(20), nullable=False),
        sa.Column("target_department", sa.String(100)),
        sa.Column("target_semester", sa.Integer()),
        sa.Column("target_section", sa.String(20)),
        sa.Column("faculty_id", sa.Integer()),
        sa.Column("faculty_name", sa.String(255)),
        sa.Column("assigned_by", sa.String(150)),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("assigned_at", sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint("assignment_type IN ('department', 'faculty')", name="check_assignment_type"),
    )
    op.create_index("ix_timetable_assignments_timetable_id", "timetable_assignments", ["timetable_id"])


def downgrade():
    for table in (
        "timetable_assignments", "timetable_entries", "timetables",
        "feedback", "notes",
        "event_attendees", "event_registrations", "events", "event_categories",
        "parent_notifications", "parent_children", "parents",
        "student_notifications", "student_assignments", "internal_marks",
        "student_marks", "student_attendance", "subjects", "students",
        "staff_notifications", "staff_leave", "staff_attendance", "staff",
        "notifications",
    ):
        op.drop_table(table)
