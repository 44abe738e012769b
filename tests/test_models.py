import unittest


class SyncSourceColorMapTests(unittest.TestCase):
    def test_color_map_decoding(self):
        from boardsync.models import SyncSource

        self.assertEqual(SyncSource(name="s", color_map=None).get_color_map(), {})
        self.assertEqual(
            SyncSource(name="s", color_map='{"Bug": "red", "Feature": "green"}').get_color_map(),
            {"Bug": "red", "Feature": "green"},
        )

    def test_color_map_must_be_an_object(self):
        from boardsync.models import SyncSource

        with self.assertRaises(ValueError):
            SyncSource(name="s", color_map='["red"]').get_color_map()


if __name__ == "__main__":
    unittest.main()
