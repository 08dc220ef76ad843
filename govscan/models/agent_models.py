"""
Agent Models — monitored compliance documents and daemon status.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class AgentSource(BaseModel):
    """A remote compliance document watched by the agent poller."""

    id: int = 0
    url: str
    name: str = ""
    enabled: bool = True
    content_hash: str = ""
    last_check_at: Optional[datetime] = None
    last_error: str = ""
    linked_policy_id: int = Field(default=0, description="0 when no policy is linked")
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class AgentStatus(BaseModel):
    """Snapshot of the daemon's running state."""

    running: bool
    pid: Optional[int] = None
    interval_hours: int
    source_count: int = 0
    error_count: int = 0
    last_check_at: Optional[datetime] = None
    next_check_at: Optional[datetime] = None


class AgentSourceCreateRequest(BaseModel):
    """Request body for POST /agent/sources."""

    url: str = Field(..., min_length=1)
    name: str = ""
