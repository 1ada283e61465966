"""
Signal data models.

Defines the closed vocabularies shared by every agent (agent names, signal
types, lifecycle statuses) and the immutable records the bus hands out.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class AgentName(str, Enum):
    """Participants on the bus."""
    CAREER = "career"
    HIGROW = "higrow"
    TRADING = "trading"
    HEALTH = "health"
    LEARNING = "learning"
    FINANCE = "finance"
    MORNING_BRIEFING = "morning-briefing"
    EVENING_REVIEW = "evening-review"
    TASK_REMINDER = "task-reminder"
    TELEGRAM_BOT = "telegram-bot"


class SignalType(str, Enum):
    """Event tags, grouped by the domain that usually emits them."""
    # Career -> Learning
    SKILL_GAP = "skill_gap"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    REJECTION_PATTERN = "rejection_pattern"
    # Health -> All
    LOW_SLEEP = "low_sleep"
    RECOVERY_STATUS = "recovery_status"
    WORKOUT_COMPLETED = "workout_completed"
    STREAK_AT_RISK = "streak_at_risk"
    # Finance -> All
    BUDGET_ALERT = "budget_alert"
    CASH_GAP = "cash_gap"
    SAVINGS_ON_TRACK = "savings_on_track"
    OVERSPENDING = "overspending"
    # Trading -> Finance/Review
    SIGNAL_ACTIVE = "signal_active"
    SIGNAL_HIT_TP = "signal_hit_tp"
    SIGNAL_HIT_SL = "signal_hit_sl"
    HIGH_VOLATILITY = "high_volatility"
    # Learning -> Career/Review
    STUDY_STREAK = "study_streak"
    RESOURCE_COMPLETED = "resource_completed"
    SKILL_IMPROVED = "skill_improved"
    # Higrow -> Review
    LEAD_CONVERTED = "lead_converted"
    PIPELINE_VELOCITY = "pipeline_velocity"
    STUCK_DEAL = "stuck_deal"
    # Evening -> Morning
    DAILY_SCORE = "daily_score"
    WEAK_DOMAIN = "weak_domain"
    PATTERN_DETECTED = "pattern_detected"
    # Morning -> Reminder
    HIGH_PRIORITY_DAY = "high_priority_day"
    COMMUTE_DELAY = "commute_delay"
    # Telegram -> Reminder (focus mode, time blocking)
    FOCUS_MODE_ACTIVE = "focus_mode_active"
    FOCUS_MODE_ENDED = "focus_mode_ended"
    TIMEBLOCK_PROPOSAL = "timeblock_proposal"


class SignalStatus(str, Enum):
    """Signal lifecycle. ``active`` is the only non-terminal status."""
    ACTIVE = "active"
    CONSUMED = "consumed"
    DISMISSED = "dismissed"

    @property
    def is_terminal(self) -> bool:
        return self is not SignalStatus.ACTIVE


@dataclass(frozen=True)
class NewSignal:
    """Signal fields supplied by the emitter; the store assigns the rest."""
    source_agent: str
    signal_type: str
    message: str
    priority: int
    expires_at: datetime
    target_agent: Optional[str] = None
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Signal:
    """A stored signal, as read from the store."""
    id: str
    source_agent: str
    signal_type: str
    message: str
    priority: int
    status: str
    created_at: datetime
    expires_at: datetime
    target_agent: Optional[str] = None
    payload: dict[str, Any] = field(default_factory=dict)
    consumed_by: Optional[str] = None
    consumed_at: Optional[datetime] = None

    @property
    def is_broadcast(self) -> bool:
        """True if the signal is visible to every agent."""
        return self.target_agent is None


@dataclass(frozen=True)
class ActiveSummary:
    """Aggregate view over recent active signals."""
    total: int = 0
    critical: list[Signal] = field(default_factory=list)
    by_source: dict[str, int] = field(default_factory=dict)
    by_type: dict[str, int] = field(default_factory=dict)
