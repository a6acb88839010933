"""
Enrollment Analytics

Daily enrollment counts over a trailing window for the admin dashboard.
"""
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.models.enrollment import Enrollment

logger = logging.getLogger(__name__)


def bucket_by_day(timestamps: Iterable[datetime]) -> List[Dict[str, Union[str, int]]]:
    """
    Count timestamps per calendar day.

    Days are taken from each timestamp as stored, without time zone
    normalization. Only days with at least one timestamp are emitted,
    ascending by date.
    """
    counts = Counter(ts.date() for ts in timestamps)
    return [{"date": day.isoformat(), "count": counts[day]} for day in sorted(counts)]


class EnrollmentAnalytics:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def daily_enrollments(self, range_days: int = 30) -> List[Dict[str, Union[str, int]]]:
        """Sparse per-day enrollment counts for the last range_days days"""
        since = utcnow() - timedelta(days=range_days)

        result = await self.session.execute(
            select(Enrollment.created_at).where(Enrollment.created_at >= since)
        )
        data = bucket_by_day(result.scalars())

        logger.info(f"Enrollment analytics over {range_days} days: {len(data)} active days")
        return data
