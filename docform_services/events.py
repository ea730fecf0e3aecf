"""
Change events published by a document session.

Every mutation of a DocumentSession is announced as one of these frozen
events on ``session.changes``.  ``origin`` on LineChanged tells subscribers whether
the user made the edit or the sync controller wrote a derived amount
back.  Loading a stored document is a single DocumentLoaded event.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class ChangeOrigin(str, Enum):
    USER = "user"
    SYNC = "sync"


@dataclass(frozen=True)
class LineChanged:
    index: int
    field: str
    value: Any
    origin: ChangeOrigin = ChangeOrigin.USER


@dataclass(frozen=True)
class LineAdded:
    index: int


@dataclass(frozen=True)
class LineRemoved:
    index: int


@dataclass(frozen=True)
class HeaderChanged:
    field: str
    value: Any


@dataclass(frozen=True)
class DocumentLoaded:
    line_count: int


DocumentEvent = Union[LineChanged, LineAdded, LineRemoved, HeaderChanged, DocumentLoaded]
