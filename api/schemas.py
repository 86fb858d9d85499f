from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class ThresholdsModel(BaseModel):
    excellent_roi: float = 500.0
    good_roi: float = 200.0


class TaskFiltersModel(BaseModel):
    statuses: List[str] = Field(default_factory=list)
    priorities: List[str] = Field(default_factory=list)
    query: str = ""
    top_n: int = 15
    thresholds: ThresholdsModel = Field(default_factory=ThresholdsModel)


class TaskCreateModel(BaseModel):
    id: Optional[str] = None
    title: str
    revenue: float = 0.0
    time_taken: float = 1.0
    priority: str = "Medium"
    status: str = "Not Started"
    notes: str = ""


class TaskPatchModel(BaseModel):
    title: Optional[str] = None
    revenue: Optional[float] = None
    time_taken: Optional[float] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    completed_at: Optional[str] = None
