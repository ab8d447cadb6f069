from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_by_name=True)


class ErrorResponse(CamelModel):
    ok: bool = False
    code: str
    message: str


class SuccessRange(CamelModel):
    min: float
    max: float


class ApproachInfo(CamelModel):
    tier: str
    name: str
    description: str
    success_rate: SuccessRange = Field(..., alias="successRate")
    duration_minutes: float = Field(..., alias="durationMinutes")
    timeline_shift: Optional[SuccessRange] = Field(None, alias="timelineShift")
    points: int
    experience: int


class PhaseInfo(CamelModel):
    id: int
    name: str
    weight: float
    tag: str


class MissionDetail(CamelModel):
    id: str
    title: str
    description: str
    location: str
    primary_category: str = Field(..., alias="primaryCategory")
    sequence: Optional[int] = None
    repeatable: bool
    prerequisite_mission_id: Optional[str] = Field(None, alias="prerequisiteMissionId")
    preferred_categories: List[str] = Field(default_factory=list, alias="preferredCategories")
    approaches: List[ApproachInfo]
    phases: List[PhaseInfo]


class MissionBoardEntry(CamelModel):
    mission_id: str = Field(..., alias="missionId")
    title: str
    sequence: Optional[int] = None
    unlocked: bool
    completed: bool
    active_deployment_id: Optional[str] = Field(None, alias="activeDeploymentId")


class MissionBoardResponse(CamelModel):
    account_id: str = Field(..., alias="accountId")
    missions: List[MissionBoardEntry]


class CompatibilityResponse(CamelModel):
    operative_id: str = Field(..., alias="operativeId")
    mission_id: str = Field(..., alias="missionId")
    category: str
    mission_category: str = Field(..., alias="missionCategory")
    base: float
    experience_bonus: float = Field(..., alias="experienceBonus")
    level_bonus: float = Field(..., alias="levelBonus")
    preference_adjustment: float = Field(..., alias="preferenceAdjustment")
    overall: float


class DeployRequest(CamelModel):
    operative_id: str = Field(..., alias="operativeId", min_length=1)
    approach: str


class DeployResponse(CamelModel):
    ok: bool = True
    deployment_id: str = Field(..., alias="deploymentId")
    status: str
    completes_at: datetime = Field(..., alias="completesAt")


class PhaseStatus(CamelModel):
    phase_id: int = Field(..., alias="phaseId")
    name: str
    status: str
    success: Optional[bool] = None
    roll: Optional[int] = None
    threshold: Optional[int] = None
    tension: Optional[str] = None
    narrative: Optional[str] = None
    first_person_report: Optional[str] = Field(None, alias="firstPersonReport")
    image_prompt: Optional[str] = Field(None, alias="imagePrompt")
    revealed_at: Optional[datetime] = Field(None, alias="revealedAt")


class RewardInfo(CamelModel):
    points: int
    experience: int
    timeline_shift: float = Field(..., alias="timelineShift")
    lore_unlocks: List[str] = Field(default_factory=list, alias="loreUnlocks")
    achievements: List[str] = Field(default_factory=list)


class ResultInfo(CamelModel):
    overall_success: bool = Field(..., alias="overallSuccess")
    successful_phases: int = Field(..., alias="successfulPhases")
    narrative: str
    first_person_report: str = Field(..., alias="firstPersonReport")
    rewards: RewardInfo


class DeploymentStatusResponse(CamelModel):
    deployment_id: str = Field(..., alias="deploymentId")
    mission_id: str = Field(..., alias="missionId")
    operative_id: str = Field(..., alias="operativeId")
    approach: str
    status: str
    created_at: datetime = Field(..., alias="createdAt")
    completes_at: datetime = Field(..., alias="completesAt")
    progress: int = Field(..., ge=0, le=100)
    current_phase: int = Field(..., alias="currentPhase")
    next_reveal_at: Optional[datetime] = Field(None, alias="nextRevealAt")
    time_remaining_seconds: float = Field(..., alias="timeRemainingSeconds", ge=0)
    phases: List[PhaseStatus]
    result: Optional[ResultInfo] = None


class OperativeResponse(CamelModel):
    id: str
    account_id: str = Field(..., alias="accountId")
    name: str
    category: str
    experience: int
    level: int
    mission_count: int = Field(..., alias="missionCount")
    exclusivity_held: bool = Field(..., alias="exclusivityHeld")
    held_by: Optional[str] = Field(None, alias="heldBy")


class AccountResponse(CamelModel):
    id: str
    rank: str
    points: int
    missions_succeeded: int = Field(..., alias="missionsSucceeded")
    missions_failed: int = Field(..., alias="missionsFailed")
    timeline_shift: float = Field(..., alias="timelineShift")
    lore_unlocks: List[str] = Field(default_factory=list, alias="loreUnlocks")
    achievements: List[str] = Field(default_factory=list)
