"""ORM models for the rotable kernel."""

from rotable_kernel.models.component import ComponentModel
from rotable_kernel.models.fabrication import (
    FabricationDecisionModel,
    FabricationRequestModel,
)
from rotable_kernel.models.inspection import QARecordModel
from rotable_kernel.models.installation import InstallRecordModel
from rotable_kernel.models.timeline import TimelineEventModel

__all__ = [
    "ComponentModel",
    "FabricationDecisionModel",
    "FabricationRequestModel",
    "InstallRecordModel",
    "QARecordModel",
    "TimelineEventModel",
]
