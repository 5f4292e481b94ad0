"""Internal assessment arithmetic.

Internal tests are marked out of 20 and the assignment component out of 10.
The internal total averages the two tests, adds the assignment marks and is
capped at 30.
"""
import math

INTERNAL_TEST_MAX = 20
ASSIGNMENT_MAX = 10
INTERNAL_TOTAL_MAX = 30

GRADE_BOUNDARIES = [
    (90, "A+"),
    (80, "A"),
    (70, "B+"),
    (60, "B"),
    (50, "C+"),
    (40, "C"),
]

def round_half_up(value) -> int:
    """Round to the nearest integer, halves going up."""
    return int(math.floor(float(value) + 0.5))

def validate_internal_marks(internal1, internal2, assignment):
    """Raise ValueError when any component falls outside its range."""
    if not 0 <= float(internal1) <= INTERNAL_TEST_MAX:
        raise ValueError(f"Internal 1 marks must be between 0 and {INTERNAL_TEST_MAX}")
    if not 0 <= float(internal2) <= INTERNAL_TEST_MAX:
        raise ValueError(f"Internal 2 marks must be between 0 and {INTERNAL_TEST_MAX}")
    if not 0 <= float(assignment) <= ASSIGNMENT_MAX:
        raise ValueError(f"Assignment marks must be between 0 and {ASSIGNMENT_MAX}")

def calculate_internal_total(internal1, internal2, assignment) -> int:
    average = (float(internal1) + float(internal2)) / 2
    return min(INTERNAL_TOTAL_MAX, round_half_up(average + float(assignment)))

def calculate_percentage(total) -> int:
    return round_half_up(float(total) / INTERNAL_TOTAL_MAX * 100)

def grade_for_percentage(percentage) -> str:
    for boundary, grade in GRADE_BOUNDARIES:
        if percentage >= boundary:
            return grade
    return "F"

def summarize_internal_marks(rows) -> dict:
    """Aggregate a list of internal mark rows for a portal summary."""
    if not rows:
        return {
            "count": 0,
            "averageTotal": 0,
            "averagePercentage": 0,
            "overallGrade": "N/A",
        }

    totals = [row.total_marks or 0 for row in rows]
    average_total = sum(totals) / len(totals)
    average_percentage = round_half_up(sum(calculate_percentage(t) for t in totals) / len(totals))

    return {
        "count": len(rows),
        "averageTotal": round(average_total, 2),
        "averagePercentage": average_percentage,
        "overallGrade": grade_for_percentage(average_percentage),
    }
