"""
Pure domain layer.

This module contains value objects and pure helpers with NO dependencies on:
- UI or data-binding frameworks
- The document repository client
- Wall-clock time (schedulers are injected)

Value objects are immutable; LineRecord is the one mutable row owned by a
document session.
"""

from docform_kernel.domain.coercion import (
    parse_percentage_label,
    round2,
    to_number,
)
from docform_kernel.domain.scheduler import (
    AsyncioScheduler,
    ManualScheduler,
    Scheduler,
    TimerHandle,
)
from docform_kernel.domain.values import (
    DocumentHeader,
    DocumentTotals,
    LineItem,
    LineRecord,
    RoundingMode,
    TaxTreatment,
)

__all__ = [
    "AsyncioScheduler",
    "DocumentHeader",
    "DocumentTotals",
    "LineItem",
    "LineRecord",
    "ManualScheduler",
    "RoundingMode",
    "Scheduler",
    "TaxTreatment",
    "TimerHandle",
    "parse_percentage_label",
    "round2",
    "to_number",
]
