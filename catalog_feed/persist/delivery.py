from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    reason: str = ""


class DeliveryClient(Protocol):
    """Push one local file to a remote location in a single attempt."""

    def push(self, local_path: Path, remote_path: str) -> DeliveryResult: ...
