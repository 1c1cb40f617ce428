"""Pydantic request/response models for the debug REST API."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class MilestoneView(BaseModel):
    threshold: float
    tier: str
    fired: bool


class SchedulerView(BaseModel):
    name: str
    active: bool
    init_error: Optional[str] = None
    spawning_enabled: bool
    elapsed_time: float
    escalation_complete: bool
    min_frequency: float
    max_frequency: float
    next_interval: float
    last_spawn_timestamp: float
    milestones: List[MilestoneView] = []
    pool_available: Optional[int] = None


class SpawnGateRequest(BaseModel):
    enabled: bool


class SpawnGateResponse(BaseModel):
    name: str
    spawning_enabled: bool
