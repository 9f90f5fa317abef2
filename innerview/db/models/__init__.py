"""
Domain-split SQLAlchemy models with a single aggregator.

Exposes `Base`, `now_utc`, `ensure_aware` and all ORM classes so callers can
use `from innerview.db import models` and reference `models.Student` etc.
"""

from .base import Base, now_utc, ensure_aware  # re-export

# Domain models
from .users import User
from .schools import SchoolNetwork, School
from .students import Student, Assessment, Intervention
from .catalogue import (
    LearningDifficulty,
    StudentDifficulty,
    BaseIntervention,
    DifficultyIntervention,
    InterventionProtocol,
    ProtocolStep,
)
from .screenings import ScreeningInstrument, ScreeningIndicator, Screening, ScreeningResult
from .teams import RtiTeam, RtiTeamMember, StudentTeam, RtiMeeting, MeetingParticipant, Referral
from .communications import TutorCommunication
from .notifications import Notification
from .audit import AuditLog
from .integrations import PlatformIntegration, ClassSync, UserSync, Webhook, LtiDeployment, LtiLaunchState

__all__ = [
    # base
    "Base",
    "now_utc",
    "ensure_aware",
    # users/schools
    "User",
    "SchoolNetwork",
    "School",
    # students
    "Student",
    "Assessment",
    "Intervention",
    # catalogue
    "LearningDifficulty",
    "StudentDifficulty",
    "BaseIntervention",
    "DifficultyIntervention",
    "InterventionProtocol",
    "ProtocolStep",
    # screenings
    "ScreeningInstrument",
    "ScreeningIndicator",
    "Screening",
    "ScreeningResult",
    # teams
    "RtiTeam",
    "RtiTeamMember",
    "StudentTeam",
    "RtiMeeting",
    "MeetingParticipant",
    "Referral",
    # communications/notifications/audit
    "TutorCommunication",
    "Notification",
    "AuditLog",
    # integrations
    "PlatformIntegration",
    "ClassSync",
    "UserSync",
    "Webhook",
    "LtiDeployment",
    "LtiLaunchState",
]
