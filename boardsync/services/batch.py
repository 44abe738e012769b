"""Collect-then-flush grouping of staging records per destination"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from boardsync.services.errors import ReconciliationError
from boardsync.services.reconciliation import ReconciliationEngine, ReconciliationOutcome
from boardsync.services.records import StagingRecord

logger = logging.getLogger(__name__)


@dataclass
class RecordFailure:
    remote_id: str
    destination: str
    message: str


@dataclass
class RunReport:
    applied: List[ReconciliationOutcome] = field(default_factory=list)
    failed: List[RecordFailure] = field(default_factory=list)

    @property
    def created(self) -> int:
        return sum(1 for o in self.applied if o.created)

    @property
    def updated(self) -> int:
        return sum(1 for o in self.applied if not o.created)

    @property
    def comments(self) -> int:
        return sum(o.comments_added for o in self.applied)


class BatchCoordinator:
    """Accumulate staging records from every source, then reconcile per destination.

    Records are keyed by (target client, destination list) so that several
    sources feeding the same list are applied together after all have been
    collected.
    """

    def __init__(self, engine: ReconciliationEngine):
        self.engine = engine
        self._groups: Dict[Tuple[object, str], List[StagingRecord]] = {}

    def collect(self, records: List[StagingRecord], target) -> "BatchCoordinator":
        for record in records:
            self._groups.setdefault((target, record.destination), []).append(record)
        return self

    @property
    def pending(self) -> int:
        return sum(len(records) for records in self._groups.values())

    def flush(self) -> RunReport:
        report = RunReport()
        groups, self._groups = self._groups, {}
        for (target, destination), records in groups.items():
            logger.info(f"Reconciling {len(records)} issue(s) into list {destination}")
            for record in records:
                try:
                    report.applied.append(self.engine.apply(record, target))
                except ReconciliationError as e:
                    logger.error(str(e))
                    report.failed.append(RecordFailure(e.remote_id, e.destination, str(e)))
        return report
