from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from catalog_feed.persist.delivery import DeliveryResult

log = logging.getLogger(__name__)


class RcloneDeliveryClient:
    """Deliver feed files with ``rclone copyto``.

    *service* names the rclone remote (for example an SFTP remote defined in
    ``rclone.conf``). An empty service copies to a local path.
    """

    def __init__(self, service: str, binary: str = "rclone", timeout: float | None = None):
        self.service = service
        self.binary = binary
        self.timeout = timeout

    def destination(self, remote_path: str) -> str:
        return f"{self.service}:{remote_path}" if self.service else remote_path

    def push(self, local_path: Path, remote_path: str) -> DeliveryResult:
        dest = self.destination(remote_path)
        cmd = [self.binary, "copyto", str(local_path), dest]
        log.info("pushing %s to %s", local_path, dest)
        try:
            proc = subprocess.run(
                cmd, capture_output=True, text=True, check=False, timeout=self.timeout
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            return DeliveryResult(ok=False, reason=f"{self.binary} failed to run: {exc}")
        if proc.returncode != 0:
            detail = (proc.stderr or proc.stdout or "").strip()[-500:]
            return DeliveryResult(
                ok=False, reason=f"{self.binary} exited {proc.returncode}: {detail}"
            )
        return DeliveryResult(ok=True)
