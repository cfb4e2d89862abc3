"""Incremental catalog feed run.

One call to :func:`run_feed` exports the catalog units changed since the
last recorded scan, or the whole catalog on the first run, into
``Catalog-<brand>-<instance><sequence>.csv`` and pushes that file to the
remote location.

Run states::

    INIT -> HEADER_WRITTEN -> SCANNING -> CLOSED -> DISCARDED
                                               \\-> DELIVERING -> DELIVERED
                                                              \\-> DELIVERY_FAILED

Any error while writing the header or scanning ends in ``ABORTED`` with the
stored state untouched. After the scan the run timestamp is saved before the
push, so a failed push does not roll it back (``timestamp_policy`` set to
``after_delivery`` changes that). The sequence counter only moves after a
confirmed delivery.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

from catalog_feed.catalog.source import CatalogSource
from catalog_feed.common.config import FeedConfig
from catalog_feed.export.incremental import format_timestamp, include
from catalog_feed.export.mapper import map_record
from catalog_feed.export.writer import FeedWriter
from catalog_feed.persist.delivery import DeliveryClient
from catalog_feed.persist.state import FeedStateStore
from catalog_feed.sensors import sensor

log = logging.getLogger(__name__)


class RunState(str, Enum):
    INIT = "init"
    HEADER_WRITTEN = "header_written"
    SCANNING = "scanning"
    CLOSED = "closed"
    DISCARDED = "discarded"
    DELIVERING = "delivering"
    DELIVERED = "delivered"
    DELIVERY_FAILED = "delivery_failed"
    CONFIG_FAILED = "config_failed"
    ABORTED = "aborted"


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    TRANSFER = "transfer"
    UNEXPECTED = "unexpected"


@dataclass
class RunResult:
    state: RunState
    error: Optional[ErrorKind] = None
    message: str = ""
    artifact: Optional[Path] = None
    rows: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def artifact_name(brand_code: str, instance_id: str, sequence: int) -> str:
    # Sequences past eight digits widen the name instead of being cut.
    return f"Catalog-{brand_code}-{instance_id}{sequence:08d}.csv"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@sensor("catalog_feed")
def run_feed(
    config: FeedConfig,
    store: FeedStateStore,
    source: CatalogSource,
    client: DeliveryClient,
    clock: Callable[[], datetime] = _now,
) -> RunResult:
    try:
        state = store.read()
    except Exception as exc:
        log.exception("could not read catalog feed state")
        return RunResult(RunState.ABORTED, ErrorKind.UNEXPECTED, str(exc))
    field_mapping = dict(config.field_mapping)
    file_name = artifact_name(config.brand_code, config.instance_id, state.sequence_number)
    artifact = config.staging_dir() / file_name
    log.info(
        "catalog feed run file=%s mode=%s since=%s",
        file_name,
        "full" if state.is_bootstrap else "incremental",
        state.last_run_timestamp,
    )

    run_state = RunState.INIT
    writer = FeedWriter(artifact, config.delimiter)
    try:
        with writer:
            writer.write_header(field_mapping)
            run_state = RunState.HEADER_WRITTEN
            entities = source.scan()
            run_state = RunState.SCANNING
            for entity in entities:
                if not include(entity, state.last_run_timestamp):
                    continue
                writer.write_record(
                    map_record(
                        entity,
                        field_mapping,
                        config.price_book_id,
                        host=config.storefront_host,
                        product_path=config.product_path,
                        size_attribute=config.size_attribute,
                    )
                )
    except Exception as exc:
        log.exception("catalog feed aborted in state %s", run_state.value)
        return RunResult(
            RunState.ABORTED,
            ErrorKind.UNEXPECTED,
            f"aborted while {run_state.value}: {exc}",
            artifact,
            writer.rows_written,
        )

    rows = writer.rows_written
    try:
        return _finish(config, store, client, clock, artifact, rows)
    except Exception as exc:
        log.exception("catalog feed failed after scan")
        return RunResult(RunState.CLOSED, ErrorKind.UNEXPECTED, str(exc), artifact, rows)


def _finish(
    config: FeedConfig,
    store: FeedStateStore,
    client: DeliveryClient,
    clock: Callable[[], datetime],
    artifact: Path,
    rows: int,
) -> RunResult:
    run_timestamp = format_timestamp(clock())
    after_scan = config.timestamp_policy == "after_scan"
    if after_scan:
        store.advance_timestamp(run_timestamp)

    if rows == 0:
        artifact.unlink(missing_ok=True)
        if not after_scan:
            store.advance_timestamp(run_timestamp)
        log.info("no new record(s) found, removed %s", artifact.name)
        return RunResult(RunState.DISCARDED, artifact=None, rows=0)

    if not config.remote_path:
        log.error("remote path is not configured, %s not sent", artifact.name)
        return RunResult(
            RunState.CONFIG_FAILED,
            ErrorKind.CONFIGURATION,
            "remote path is empty",
            artifact,
            rows,
        )

    remote = config.remote_path + artifact.name
    try:
        result = client.push(artifact, remote)
    except Exception as exc:
        log.exception("delivery client raised while sending %s", artifact.name)
        return RunResult(RunState.DELIVERY_FAILED, ErrorKind.TRANSFER, str(exc), artifact, rows)
    if not result.ok:
        log.error("error while sending %s to %s: %s", artifact.name, remote, result.reason)
        return RunResult(
            RunState.DELIVERY_FAILED, ErrorKind.TRANSFER, result.reason, artifact, rows
        )

    if not after_scan:
        store.advance_timestamp(run_timestamp)
    sequence = store.increment_sequence()
    log.info("delivered %s with %d record(s), next sequence %d", remote, rows, sequence)
    return RunResult(RunState.DELIVERED, artifact=artifact, rows=rows)
