"""
Pydantic schemas for time slot administration and listing.
"""

import datetime as dt

from pydantic import BaseModel, Field, model_validator


class SlotCreate(BaseModel):
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    capacity: int = Field(..., gt=0, le=1000)
    active: bool = True

    @model_validator(mode="after")
    def end_after_start(self) -> "SlotCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class SlotResponse(BaseModel):
    id: int
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    capacity: int
    booked_count: int
    remaining: int
    active: bool

    model_config = {"from_attributes": True}


class SlotListResponse(BaseModel):
    date: dt.date
    slots: list[SlotResponse]
    cached: bool = False
    generated_at: dt.datetime
