import unittest

from fakes import FakeTarget


def _record(remote_id, lookup, destination):
    from boardsync.services.records import StagingRecord

    return StagingRecord(
        remote_id=str(remote_id),
        title="T",
        description="",
        color=None,
        comments=[],
        destination=destination,
        lookup=lookup,
    )


class BatchCoordinatorTests(unittest.TestCase):
    def test_nothing_is_applied_before_flush(self):
        from boardsync.services.batch import BatchCoordinator
        from boardsync.services.reconciliation import ReconciliationEngine
        from boardsync.services.staging import CardListingCache

        target = FakeTarget()
        cache = CardListingCache(target)
        coordinator = BatchCoordinator(ReconciliationEngine())

        coordinator.collect([_record(1, cache.lookup_for("a"), "a")], target)
        coordinator.collect([_record(2, cache.lookup_for("a"), "a")], target)

        self.assertEqual(coordinator.pending, 2)
        self.assertEqual(target.list_calls, [])
        self.assertEqual(target.created, [])

    def test_flush_lists_each_destination_once(self):
        from boardsync.services.batch import BatchCoordinator
        from boardsync.services.reconciliation import ReconciliationEngine
        from boardsync.services.staging import CardListingCache

        target = FakeTarget()
        cache = CardListingCache(target)
        coordinator = BatchCoordinator(ReconciliationEngine())

        # Two sources feeding list "a", one feeding "b".
        coordinator.collect([_record(i, cache.lookup_for("a"), "a") for i in (1, 2, 3)], target)
        coordinator.collect([_record(4, cache.lookup_for("b"), "b")], target)
        coordinator.collect([_record(5, cache.lookup_for("a"), "a")], target)

        report = coordinator.flush()

        self.assertEqual(sorted(target.list_calls), ["a", "b"])
        self.assertEqual(report.created, 5)
        self.assertEqual(coordinator.pending, 0)
        # Records of one destination are applied together, in collection order.
        self.assertEqual([name for _, name, _, _ in target.created], ["#1 T", "#2 T", "#3 T", "#5 T", "#4 T"])

    def test_failed_record_does_not_stop_the_batch(self):
        from boardsync.services.batch import BatchCoordinator
        from boardsync.services.reconciliation import ReconciliationEngine
        from boardsync.services.staging import CardListingCache

        target = FakeTarget()
        target.fail_create_for = {"#2 "}
        cache = CardListingCache(target)
        coordinator = BatchCoordinator(ReconciliationEngine())
        coordinator.collect([_record(i, cache.lookup_for("a"), "a") for i in (1, 2, 3)], target)

        report = coordinator.flush()

        self.assertEqual([o.remote_id for o in report.applied], ["1", "3"])
        self.assertEqual([f.remote_id for f in report.failed], ["2"])


if __name__ == "__main__":
    unittest.main()
