"""
Pydantic schemas package.
"""

from app.schemas.recurring import (
    SeriesUpsert,
    SeriesResponse,
    SnoozeRequest,
    SeriesSnoozeResponse,
    DeleteResponse,
    DetectRequest,
    DetectionResult,
    DetectionResponse,
)
from app.schemas.bill import (
    BillCreate,
    BillResponse,
    BillMarkRequest,
    BillActionResponse,
    BillMatchRequest,
    BillMatchResponse,
)
from app.schemas.paycheck import (
    PaycheckHitResponse,
    PaycheckMatchRequest,
    PaycheckMatchResponse,
)
from app.schemas.overview import (
    OverviewSummary,
    OverviewResponse,
    BackfillRequest,
    BackfillCounts,
    BackfillResponse,
)

__all__ = [
    "SeriesUpsert",
    "SeriesResponse",
    "SnoozeRequest",
    "SeriesSnoozeResponse",
    "DeleteResponse",
    "DetectRequest",
    "DetectionResult",
    "DetectionResponse",
    "BillCreate",
    "BillResponse",
    "BillMarkRequest",
    "BillActionResponse",
    "BillMatchRequest",
    "BillMatchResponse",
    "PaycheckHitResponse",
    "PaycheckMatchRequest",
    "PaycheckMatchResponse",
    "OverviewSummary",
    "OverviewResponse",
    "BackfillRequest",
    "BackfillCounts",
    "BackfillResponse",
]
