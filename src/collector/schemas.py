"""Telemetry event schema.

Every checkpoint recorded during a page view (experiment served, campaign
served, ...) becomes one Event. source/target follow the RUM convention:
for the "experiment" checkpoint, source is the experiment id and target the
variant that was actually served.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class EventType(str, Enum):
    EXPERIMENT = "experiment"
    CAMPAIGN = "campaign"


class Event(BaseModel):
    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    checkpoint: str
    source: str | None = None
    target: str | None = None
    # Sampling weight in effect when the event was recorded (1 in N)
    weight: int = Field(default=100, ge=1)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
