from .Profile import Profile, TokenBlocklist
from .TrainingProgram import TrainingProgram
from .Participant import Participant
from .TrainingUpdate import TrainingUpdate
from .TrainingMetric import TrainingMetric
from .AuditLog import AuditLog
from .base import (
    TimestampMixin, RoleEnum, TrainingStatusEnum, TrainingTypeEnum,
    DisasterTypeEnum, UPDATE_TYPES
)
