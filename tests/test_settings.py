import os
import unittest
from unittest import mock

from config.settings import TrackerSettings


class TrackerSettingsTests(unittest.TestCase):
    def test_repeated_hashtags_keep_first_seen_order(self):
        settings = TrackerSettings(hashtags=["#b", "#a", " #b ", "", "#a"])

        self.assertEqual(settings.hashtags, ["#b", "#a"])

    def test_repeated_hashtags_from_environment(self):
        with mock.patch.dict(os.environ, {"TRACKER_HASHTAGS": "#a,#a, #c"}):
            settings = TrackerSettings()

        self.assertEqual(settings.hashtags, ["#a", "#c"])

    def test_empty_hashtag_list_is_rejected(self):
        with self.assertRaises(ValueError):
            TrackerSettings(hashtags=[" ", ""])

    def test_page_size_is_clamped(self):
        self.assertEqual(TrackerSettings(hashtags=["#a"], search_page_size=500).search_page_size, 50)
        self.assertEqual(TrackerSettings(hashtags=["#a"], search_page_size=0).search_page_size, 1)

    def test_unknown_stats_source_is_rejected(self):
        with self.assertRaises(ValueError):
            TrackerSettings(hashtags=["#a"], daily_stats_source="sheet")


if __name__ == "__main__":
    unittest.main()
