"""Common types and enums."""

from __future__ import annotations

from enum import Enum


class OperativeCategory(str, Enum):
    """Temperament of an operative; drives compatibility and phase affinity."""

    ANALYTICAL = "analytical"
    AGGRESSIVE = "aggressive"
    DIPLOMATIC = "diplomatic"
    ADAPTIVE = "adaptive"


class MissionCategory(str, Enum):
    """Primary approach category a mission asks for."""

    SABOTAGE = "sabotage"
    EXPOSE = "expose"
    ORGANIZE = "organize"
    INVESTIGATE = "investigate"
    INFILTRATE = "infiltrate"


class RiskTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PhaseTag(str, Enum):
    """Thematic tag of a mission phase."""

    INFILTRATION = "infiltration"
    ANALYSIS = "analysis"
    SOCIAL = "social"
    STEALTH = "stealth"
    COMBAT = "combat"
    EXECUTION = "execution"
    EXTRACTION = "extraction"


class DeploymentStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self is not DeploymentStatus.ACTIVE


class TensionLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class PhaseVisibility(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
