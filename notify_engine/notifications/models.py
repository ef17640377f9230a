"""Argument types for the convenience senders."""

from typing import Optional

from pydantic import BaseModel, Field


class InterviewDetails(BaseModel):
    """Interview facts shared by the scheduled and reminder notifications.

    Attributes:
        date: Display date, e.g. "2025-03-14"
        time: Display time, e.g. "10:00 AM"
        duration: Length in minutes
        type: Interview format, e.g. "Video", "Onsite"
        interviewer: Interviewer name (scheduled notification only)
        meeting_link: Video call URL
        location: Physical address
    """

    date: str
    time: str
    duration: int = Field(..., gt=0)
    type: str
    interviewer: Optional[str] = None
    meeting_link: Optional[str] = None
    location: Optional[str] = None
