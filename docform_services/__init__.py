"""
Services layer: per-document state and the reactive sync protocol.

    session = DocumentSession("purchase_order")
    controller = LineSyncController(session, scheduler)
    session.update_line(0, quantity=2, rate=100)
    ...
    payload = build_submission(session)
"""

from docform_services.debounce import Debouncer
from docform_services.document import DocumentSession
from docform_services.events import (
    ChangeOrigin,
    DocumentLoaded,
    HeaderChanged,
    LineAdded,
    LineChanged,
    LineRemoved,
)
from docform_services.normalization import (
    extract_records,
    normalize_header,
    normalize_line,
)
from docform_services.observable import Observable, Subscription
from docform_services.submission import build_submission
from docform_services.sync_controller import LineSyncController

__all__ = [
    "ChangeOrigin",
    "Debouncer",
    "DocumentLoaded",
    "DocumentSession",
    "HeaderChanged",
    "LineAdded",
    "LineChanged",
    "LineRemoved",
    "LineSyncController",
    "Observable",
    "Subscription",
    "build_submission",
    "extract_records",
    "normalize_header",
    "normalize_line",
]
