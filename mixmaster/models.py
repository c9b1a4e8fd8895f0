"""Data models for requests, jobs and configuration."""

from enum import Enum
from typing import Dict, Optional
from pydantic import BaseModel, Field


class BuildMode(str, Enum):
    """Execution modes passed through to the build executor."""
    NORMAL = "normal"
    DRY_RUN = "dry-run"


class Settings(BaseModel):
    """Process-wide settings from the reserved configuration group."""
    spool: str = "/var/spool/mixmaster"
    notifications: str = "all"
    mode: BuildMode = BuildMode.NORMAL
    mailto: Optional[str] = None

    class Config:
        frozen = True
        use_enum_values = False


class IncomingRequest(BaseModel):
    """A parsed inbound request, constructed fresh per connection."""
    method: str
    path: str
    protocol_version: str
    headers: Dict[str, str] = Field(default_factory=dict)
    body: bytes = b""


class JobRecord(BaseModel):
    """Canonical job description produced by the payload normalizers."""
    scm: str = "git"
    repository_url: str = ""
    project: str
    target: str
    task: str = ""
    commit: str = ""
    view_url: str = ""
    notifications: str = "all"
    commit_messages: Dict[str, str] = Field(default_factory=dict)


class ResolvedJob(BaseModel):
    """A job record bound to exactly one configured target."""
    record: JobRecord
    build_command: str
    matched_target: str
