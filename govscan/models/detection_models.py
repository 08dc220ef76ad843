"""
AI/ML Detection Models — framework signatures and component sightings.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ComponentType(str, Enum):
    FRAMEWORK = "FRAMEWORK"
    LLM_API = "LLM_API"
    LLM_LOCAL = "LLM_LOCAL"
    MLOPS = "MLOPS"
    CONFIG = "CONFIG"


class RiskLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class EUAIActRisk(str, Enum):
    HIGH_RISK = "HIGH-RISK"
    LIMITED_RISK = "LIMITED-RISK"
    MINIMAL_RISK = "MINIMAL-RISK"


class DetectionMethod(str, Enum):
    FILE_EXTENSION = "file_extension"
    CONFIG_FILE = "config_file"
    DEPENDENCY = "dependency"
    CODE_PATTERN = "code_pattern"


@dataclass(frozen=True)
class FrameworkSignature:
    """Static registry entry describing how to recognise one framework."""

    key: str
    name: str
    patterns: tuple[str, ...]
    dep_names: tuple[str, ...]
    type: ComponentType
    risk_base: RiskLevel


@dataclass(frozen=True)
class ModelFileExtension:
    extension: str
    model_type: str
    risk: RiskLevel


class Detection(BaseModel):
    """One AI/ML component sighting."""

    name: str
    version: Optional[str] = None
    type: str
    risk_level: str
    eu_ai_act_risk: str
    status: str = "REVIEW_REQUIRED"
    file_path: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    detection_method: DetectionMethod


class AIDetection(Detection):
    """A persisted detection attached to a scan."""

    id: int = 0
    scan_id: int
    details: str = "{}"
    created_at: datetime = Field(default_factory=datetime.now)
