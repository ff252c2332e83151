"""
Time helpers shared by the dialer and the performance aggregator
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def format_duration(seconds: float) -> str:
    """Format a live call duration as m:ss (e.g. 2:05)."""
    total = max(0, int(seconds))
    mins, secs = divmod(total, 60)
    return f"{mins}:{secs:02d}"


def format_duration_text(seconds: float) -> str:
    """
    Format an average duration for display (e.g. "2m 15s").

    Durations under a minute are shown in seconds only.
    """
    total = max(0, int(round(seconds)))
    mins, secs = divmod(total, 60)
    if mins == 0:
        return f"{secs}s"
    return f"{mins}m {secs}s"
