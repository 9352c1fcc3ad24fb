"""
Timezone-aware timestamps. Every stored datetime is UTC with tzinfo set.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
