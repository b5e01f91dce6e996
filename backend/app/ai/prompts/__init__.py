"""AI prompts."""

from app.ai.prompts.recurring_detection import RECURRING_DETECTION_SYSTEM, RECURRING_DETECTION_USER

__all__ = [
    "RECURRING_DETECTION_SYSTEM",
    "RECURRING_DETECTION_USER",
]
