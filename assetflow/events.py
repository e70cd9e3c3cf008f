"""Change events produced by the notifier and consumed by the scheduler."""

import time
from dataclasses import dataclass, field
from typing import Optional

from .rules import PathRule


@dataclass(frozen=True)
class ChangeEvent:
    """A filesystem mutation of a watched path.

    Attributes:
        path: Changed path, absolute or relative to the project base path
        rule: Rule whose watch globs produced the event, if known
        timestamp: Wall-clock time the change was observed
    """
    path: str
    rule: Optional[PathRule] = None
    timestamp: float = field(default_factory=time.time)
