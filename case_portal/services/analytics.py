"""Figures shown on the admin dashboard."""
from datetime import datetime, timedelta
from typing import Optional

def relative_time(timestamp: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Label a past timestamp as Just now, N minutes/hours/days ago, or its date."""
    if timestamp is None:
        return "Unknown"
    now = now or datetime.utcnow()
    seconds = (now - timestamp).total_seconds()

    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        return f"{int(seconds // 60)} minutes ago"
    if seconds < 86400:
        return f"{int(seconds // 3600)} hours ago"
    if seconds < 7 * 86400:
        return f"{int(seconds // 86400)} days ago"
    return timestamp.date().isoformat()

def month_start(moment: datetime, months_back: int = 0) -> datetime:
    year, month = moment.year, moment.month - months_back
    while month < 1:
        month += 12
        year -= 1
    return datetime(year, month, 1)

def month_key(moment: datetime) -> str:
    return f"{moment.year}-{moment.month:02d}"

def growth_percentage(current: int, previous: int) -> float:
    """Month-over-month change in percent, one decimal place."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 1)

def count_by_month(timestamps, since: datetime) -> list:
    counts = {}
    for ts in timestamps:
        if ts is not None and ts >= since:
            key = month_key(ts)
            counts[key] = counts.get(key, 0) + 1
    return [{"month": key, "count": counts[key]} for key in sorted(counts)]

def marks_percentage(marks) -> float:
    """Obtained over maximum for (marks, max_marks) pairs, as a percentage."""
    obtained = sum(float(m) for m, _ in marks)
    maximum = sum(float(mx) for _, mx in marks)
    return obtained / maximum * 100 if maximum > 0 else 0.0

def performance_score(attendance: float, average_marks: float) -> float:
    return attendance * 0.3 + average_marks * 0.7

def format_uptime(seconds: float) -> str:
    delta = timedelta(seconds=int(seconds))
    hours, remainder = divmod(delta.seconds, 3600)
    minutes = remainder // 60
    return f"{delta.days}d {hours}h {minutes}m"
