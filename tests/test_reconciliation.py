import unittest

from fakes import FakeTarget, at, comment, make_session


def _record(remote_id, target, destination="list1", comments=(), color=None, title="Title"):
    from boardsync.services.records import StagingRecord
    from boardsync.services.staging import CardListingCache

    return StagingRecord(
        remote_id=str(remote_id),
        title=title,
        description=f"https://x/issues/{remote_id} \n\n",
        color=color,
        comments=list(comments),
        destination=destination,
        lookup=CardListingCache(target).lookup_for(destination),
    )


class FindMatchingRecordTests(unittest.TestCase):
    def setUp(self):
        from boardsync.services.records import TargetRecord

        self.cards = [
            TargetRecord(id="a", name="#70 Other issue"),
            TargetRecord(id="b", name="#7 The issue"),
            TargetRecord(id="c", name="Duplicate of #7"),
        ]

    def test_strict_match_requires_token_boundary(self):
        from boardsync.services.reconciliation import find_matching_record

        self.assertEqual(find_matching_record(self.cards, "7", strict=True).id, "b")

    def test_substring_match_takes_first_in_listing_order(self):
        from boardsync.services.reconciliation import find_matching_record

        self.assertEqual(find_matching_record(self.cards, "7").id, "a")

    def test_engine_matches_by_substring_unless_strict(self):
        from boardsync.config import Settings
        from boardsync.services.reconciliation import ReconciliationEngine
        from boardsync.services.records import TargetRecord

        self.assertFalse(Settings.model_fields["strict_id_match"].default)
        target = FakeTarget({"list1": [TargetRecord(id="seventy", name="#70 Other issue")]})

        outcome = ReconciliationEngine().apply(_record(7, target), target)
        self.assertEqual(outcome.card_id, "seventy")
        self.assertEqual(target.created, [])

        strict_target = FakeTarget({"list1": [TargetRecord(id="seventy", name="#70 Other issue")]})
        outcome = ReconciliationEngine(strict_id_match=True).apply(_record(7, strict_target), strict_target)
        self.assertTrue(outcome.created)

    def test_no_match(self):
        from boardsync.services.reconciliation import find_matching_record

        self.assertIsNone(find_matching_record(self.cards, "8"))


class ReconciliationEngineTests(unittest.TestCase):
    def test_creates_card_then_posts_comments(self):
        from boardsync.services.reconciliation import ReconciliationEngine

        target = FakeTarget()
        record = _record(
            7,
            target,
            title="Crash",
            color="red",
            comments=[comment("A", at(2024, 1, 3), "note"), comment("B", at(2024, 1, 4), "more")],
        )

        outcome = ReconciliationEngine().apply(record, target)

        self.assertTrue(outcome.created)
        self.assertEqual(target.created, [("list1", "#7 Crash", "https://x/issues/7 \n\n", "red")])
        self.assertEqual(
            [text for _, text in target.comments],
            ["A wrote: \n\nnote", "B wrote: \n\nmore"],
        )
        self.assertEqual(outcome.comments_added, 2)

    def test_existing_card_is_reused(self):
        from boardsync.services.reconciliation import ReconciliationEngine
        from boardsync.services.records import TargetRecord

        target = FakeTarget({"list1": [TargetRecord(id="existing", name="#7 renamed by hand")]})
        record = _record(7, target, comments=[comment("A", at(2024, 1, 3), "note")])

        outcome = ReconciliationEngine().apply(record, target)

        self.assertFalse(outcome.created)
        self.assertEqual(target.created, [])
        self.assertEqual(target.comments, [("existing", "A wrote: \n\nnote")])

    def test_rerun_never_creates_a_second_card(self):
        from boardsync.services.reconciliation import ReconciliationEngine

        target = FakeTarget()
        ReconciliationEngine().apply(_record(7, target), target)
        # Next run: fresh engine and fresh listing.
        ReconciliationEngine().apply(_record(7, target), target)

        self.assertEqual(len(target.created), 1)

    def test_same_issue_twice_in_one_run_is_created_once(self):
        from boardsync.services.reconciliation import ReconciliationEngine

        target = FakeTarget()
        engine = ReconciliationEngine()
        engine.apply(_record(7, target), target)
        engine.apply(_record(7, target), target)

        self.assertEqual(len(target.created), 1)

    def test_missing_color_is_passed_through(self):
        from boardsync.services.reconciliation import ReconciliationEngine

        target = FakeTarget()
        ReconciliationEngine().apply(_record(1, target, color=None), target)

        self.assertIsNone(target.created[0][3])

    def test_create_failure_raises_reconciliation_error(self):
        from boardsync.services.errors import ReconciliationError
        from boardsync.services.reconciliation import ReconciliationEngine

        target = FakeTarget()
        target.fail_create_for = {"#9 "}

        with self.assertRaises(ReconciliationError) as ctx:
            ReconciliationEngine().apply(_record(9, target), target)

        self.assertEqual(ctx.exception.remote_id, "9")
        self.assertEqual(ctx.exception.destination, "list1")

    def test_listing_failure_is_a_transport_error(self):
        from boardsync.services.errors import TransportError
        from boardsync.services.reconciliation import ReconciliationEngine

        target = FakeTarget()
        target.fail_list = True

        with self.assertRaises(TransportError):
            ReconciliationEngine().apply(_record(1, target), target)


class SyncedCardMappingTests(unittest.TestCase):
    def setUp(self):
        from boardsync.services.reconciliation import SyncedCardStore

        self.db = make_session()
        self.mappings = SyncedCardStore(self.db)

    def tearDown(self):
        self.db.close()

    def test_created_card_is_remembered(self):
        from boardsync.services.reconciliation import ReconciliationEngine

        target = FakeTarget()
        ReconciliationEngine(mappings=self.mappings).apply(_record(7, target), target)

        self.assertEqual(self.mappings.get("list1", "7"), "card1")

    def test_mapping_wins_over_name_match(self):
        from boardsync.services.reconciliation import ReconciliationEngine
        from boardsync.services.records import TargetRecord

        target = FakeTarget(
            {
                "list1": [
                    TargetRecord(id="decoy", name="#7 copied card"),
                    TargetRecord(id="real", name="renamed, id dropped from title"),
                ]
            }
        )
        self.mappings.remember("list1", "7", "real")

        outcome = ReconciliationEngine(mappings=self.mappings).apply(
            _record(7, target, comments=[comment("A", at(2024, 1, 3), "x")]), target
        )

        self.assertEqual(outcome.card_id, "real")
        self.assertEqual(target.comments[0][0], "real")

    def test_stale_mapping_falls_back_to_name_match(self):
        from boardsync.services.reconciliation import ReconciliationEngine
        from boardsync.services.records import TargetRecord

        target = FakeTarget({"list1": [TargetRecord(id="current", name="#7 Title")]})
        self.mappings.remember("list1", "7", "archived-card")

        outcome = ReconciliationEngine(mappings=self.mappings).apply(_record(7, target), target)

        self.assertEqual(outcome.card_id, "current")
        self.assertEqual(self.mappings.get("list1", "7"), "current")


if __name__ == "__main__":
    unittest.main()
