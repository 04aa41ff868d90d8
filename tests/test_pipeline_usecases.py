import unittest

from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from config.settings import TrackerSettings
from hashtag.application.port.hashtag_repository_port import VideoTable
from hashtag.application.usecase.daily_stats_usecase import DailyStatsUseCase
from hashtag.application.usecase.hashtag_sync_usecase import HashtagSyncUseCase
from hashtag.application.usecase.subscriber_history_usecase import SubscriberHistoryUseCase
from hashtag.domain.errors import StoreSchemaError
from hashtag.domain.run_report import StepStatus
from hashtag.domain.tag_fetch_result import TagFetchResult
from hashtag.domain.video_record import VideoCategory
from hashtag.infrastructure.orm.models import CrawlLogORM
from hashtag.infrastructure.repository.hashtag_repository_impl import HashtagRepositoryImpl
from tests.fakes import FakeSearchClient, make_record, raw_channel, raw_video, sqlite_session_factory, utc

CHANNELS = {"UC1": raw_channel("UC1", "Team", subscribers="5000")}


def tag_result(hashtag, *videos):
    return TagFetchResult(hashtag=hashtag, videos=list(videos), channels=dict(CHANNELS))


class FailingAppendRepository(HashtagRepositoryImpl):
    """특정 해시태그 적재 시 DB 오류를 흉내 낸다."""

    def __init__(self, failing_hashtag, **kwargs):
        super().__init__(**kwargs)
        self.failing_hashtag = failing_hashtag

    def append_records(self, table, records):
        records = list(records)
        if any(r.hashtag == self.failing_hashtag for r in records):
            raise OperationalError("INSERT INTO hashtag_video", {}, Exception("table is locked"))
        return super().append_records(table, records)


class PipelineTestCase(unittest.TestCase):
    def setUp(self):
        self.engine, self.session_factory = sqlite_session_factory()
        self.repository = HashtagRepositoryImpl(session_factory=self.session_factory)
        self.settings = TrackerSettings(hashtags=["#testtag", "#other"], timezone="Asia/Tokyo")

    def tearDown(self):
        self.engine.dispose()

    def crawl_logs(self):
        with self.session_factory() as db:
            return [(row.workflow, row.target, row.status) for row in db.query(CrawlLogORM).all()]


class FullSyncTests(PipelineTestCase):
    def test_rerun_keeps_latest_row_per_video(self):
        client = FakeSearchClient({"#testtag": tag_result("#testtag", raw_video("vid1", views="100"))})
        usecase = HashtagSyncUseCase(self.repository, client, self.settings)

        usecase.run_full_sync(now=utc(2026, 3, 1))
        client.results["#testtag"] = tag_result("#testtag", raw_video("vid1", views="150"))
        report = usecase.run_full_sync(now=utc(2026, 3, 2))

        rows = self.repository.read_records(VideoTable.MAIN)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].view_count, 150)
        self.assertEqual(rows[0].fetched_at, utc(2026, 3, 2))
        self.assertEqual(rows[0].channel_title, "Team")
        self.assertEqual(report.duplicate_count, 1)
        self.assertTrue(report.succeeded)
        self.assertEqual(client.calls[0][1], utc(2025, 3, 1))

    def test_failed_hashtag_does_not_block_others(self):
        client = FakeSearchClient(
            {
                "#testtag": TagFetchResult(hashtag="#testtag", error="quotaExceeded"),
                "#other": tag_result("#other", raw_video("vid2")),
            }
        )
        usecase = HashtagSyncUseCase(self.repository, client, self.settings)

        report = usecase.run_full_sync(now=utc(2026, 3, 1))

        rows = self.repository.read_records(VideoTable.MAIN)
        self.assertEqual([(r.hashtag, r.video_id) for r in rows], [("#other", "vid2")])
        self.assertFalse(report.succeeded)
        self.assertEqual([f.target for f in report.failures], ["#testtag"])
        self.assertEqual(report.failures[0].reason, "quotaExceeded")
        self.assertIn(("full_sync", "#testtag", "failed"), self.crawl_logs())
        self.assertIn(("full_sync", "#other", "success"), self.crawl_logs())

    def test_store_write_failure_is_isolated(self):
        repository = FailingAppendRepository("#testtag", session_factory=self.session_factory)
        client = FakeSearchClient(
            {
                "#testtag": tag_result("#testtag", raw_video("vid1")),
                "#other": tag_result("#other", raw_video("vid2")),
            }
        )

        report = HashtagSyncUseCase(repository, client, self.settings).run_full_sync(now=utc(2026, 3, 1))

        self.assertEqual([r.video_id for r in repository.read_records(VideoTable.MAIN)], ["vid2"])
        self.assertEqual(report.failures[0].target, "#testtag")
        self.assertIn("table is locked", report.failures[0].reason)

    def test_invalid_entries_are_skipped_and_counted(self):
        client = FakeSearchClient(
            {"#testtag": tag_result("#testtag", raw_video("vid1"), raw_video("vid2", published=None))}
        )

        report = HashtagSyncUseCase(self.repository, client, self.settings).run_full_sync(now=utc(2026, 3, 1))

        step = report.steps[0]
        self.assertEqual((step.target, step.status, step.count, step.skipped), ("#testtag", StepStatus.SUCCESS, 1, 1))
        self.assertEqual(report.steps[1].status, StepStatus.SKIPPED)


class DailyIncrementalTests(PipelineTestCase):
    def test_dedupes_only_rows_fetched_today(self):
        # 2026-03-02 12:00 Asia/Tokyo == 03:00 UTC, 하루 구간은 03-01 15:00 ~ 03-02 15:00 UTC
        now = utc(2026, 3, 2, 3)
        self.repository.append_records(
            VideoTable.STACKING,
            [
                make_record("vid1", utc(2026, 3, 1, 3), view_count=1),
                make_record("vid1", utc(2026, 3, 1, 16), view_count=2),
            ],
        )
        client = FakeSearchClient({"#testtag": tag_result("#testtag", raw_video("vid1", views="3"))})

        report = HashtagSyncUseCase(self.repository, client, self.settings).run_daily_incremental(now=now)

        rows = self.repository.read_records(VideoTable.STACKING)
        self.assertEqual([r.view_count for r in rows], [1, 3])
        self.assertEqual(report.duplicate_count, 1)
        self.assertEqual(client.calls[0][1], utc(2026, 3, 1, 15))
        self.assertEqual(self.repository.read_records(VideoTable.MAIN), [])


class DailyStatsTests(PipelineTestCase):
    def test_raw_fetch_counts_cross_hashtag_video_in_each_hashtag(self):
        shared = raw_video("vid1", views="100")
        client = FakeSearchClient(
            {
                "#testtag": tag_result("#testtag", shared, raw_video("vid2", title="clip #shorts", views="5")),
                "#other": tag_result("#other", shared),
            }
        )

        report = DailyStatsUseCase(self.repository, client, self.settings).compute_daily_stats(
            now=utc(2026, 3, 1, 16)
        )

        stats = {(s.hashtag, s.category): s for s in self.repository.read_daily_stats()}
        self.assertEqual(report.written_count, 4)
        self.assertEqual(len(stats), 4)
        self.assertEqual(stats[("#testtag", VideoCategory.REGULAR)].total_views, 100)
        self.assertEqual(stats[("#other", VideoCategory.REGULAR)].total_views, 100)
        self.assertEqual(stats[("#testtag", VideoCategory.SHORT)].video_count, 1)
        self.assertEqual(stats[("#other", VideoCategory.SHORT)].video_count, 0)
        # 16:00 UTC 는 도쿄 기준 다음 날
        self.assertEqual(str(stats[("#other", VideoCategory.SHORT)].date), "2026-03-02")

    def test_failed_fetch_still_emits_zero_rows(self):
        client = FakeSearchClient({"#testtag": TagFetchResult(hashtag="#testtag", error="boom")})

        report = DailyStatsUseCase(self.repository, client, self.settings).compute_daily_stats(
            now=utc(2026, 3, 1)
        )

        stats = self.repository.read_daily_stats()
        self.assertEqual(len(stats), 4)
        self.assertTrue(all(s.video_count == 0 for s in stats))
        self.assertEqual([f.target for f in report.failures], ["#testtag"])

    def test_repeated_hashtag_is_fetched_and_aggregated_once(self):
        settings = TrackerSettings(hashtags=["#testtag", " #testtag", "#testtag"], timezone="Asia/Tokyo")
        client = FakeSearchClient({"#testtag": tag_result("#testtag", raw_video("vid1"))})

        report = DailyStatsUseCase(self.repository, client, settings).compute_daily_stats(now=utc(2026, 3, 1))

        stats = self.repository.read_daily_stats()
        self.assertEqual(len(client.calls), 1)
        self.assertEqual(report.written_count, 2)
        self.assertEqual(
            sorted((s.hashtag, s.category.value) for s in stats),
            [("#testtag", VideoCategory.SHORT.value), ("#testtag", VideoCategory.REGULAR.value)],
        )

    def test_store_source_uses_deduplicated_main_table(self):
        settings = TrackerSettings(hashtags=["#testtag"], timezone="Asia/Tokyo", daily_stats_source="store")
        self.repository.append_records(
            VideoTable.MAIN,
            [
                make_record("vid1", utc(2026, 3, 1), channel_title="A", view_count=150),
                make_record("vid2", utc(2026, 3, 1), channel_title="A", view_count=50),
            ],
        )
        client = FakeSearchClient()

        DailyStatsUseCase(self.repository, client, settings).compute_daily_stats(now=utc(2026, 3, 1))

        regular = [s for s in self.repository.read_daily_stats() if s.category == VideoCategory.REGULAR][0]
        self.assertEqual((regular.video_count, regular.channel_count, regular.total_views), (2, 1, 200))
        self.assertEqual(client.calls, [])


class SubscriberHistoryTests(PipelineTestCase):
    def test_appends_one_snapshot_per_channel(self):
        self.repository.append_records(
            VideoTable.MAIN,
            [
                make_record("v1", utc(2026, 3, 1), channel_title="A", subscriber_count=5000, view_count=10),
                make_record("v2", utc(2026, 3, 1), channel_title="A", subscriber_count=4000, view_count=20),
                make_record("v3", utc(2026, 3, 1), channel_title="B", subscriber_count=100, view_count=1),
            ],
        )
        usecase = SubscriberHistoryUseCase(self.repository)

        usecase.update_subscriber_history(now=utc(2026, 3, 1))
        report = usecase.update_subscriber_history(now=utc(2026, 3, 2))

        history = self.repository.read_channel_snapshots()
        self.assertEqual(report.written_count, 2)
        self.assertEqual(len(history), 4)
        self.assertEqual((history[0].channel_title, history[0].subscriber_count), ("A", 5000))
        self.assertEqual(history[0].cumulative_view_count, 30)
        self.assertEqual(history[0].date, utc(2026, 3, 2))

    def test_missing_main_table_column_aborts(self):
        with self.engine.begin() as conn:
            conn.execute(text("ALTER TABLE hashtag_video DROP COLUMN channel_title"))

        with self.assertRaises(StoreSchemaError):
            SubscriberHistoryUseCase(self.repository).update_subscriber_history(now=utc(2026, 3, 1))
        self.assertEqual(self.repository.read_channel_snapshots(), [])


if __name__ == "__main__":
    unittest.main()
