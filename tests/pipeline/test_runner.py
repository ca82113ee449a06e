"""
End-to-end tests for the crawl pipeline with fake collaborators.
"""

import asyncio
import threading
import time

import pytest

from stereocrawl.core.exceptions import DiscoveryError, SnapshotError
from stereocrawl.core.state import PostStore
from stereocrawl.models import ProcessedPost, ResolvedPost, SceneCollection
from stereocrawl.pipeline import build_pipeline, run_pipeline, RunReport
from tests.conftest import make_post, FakeScraper, FakeDownloader, FakeProcessor
from tests.pipeline.helpers import stub_registry, broken


def collaborators(app_config, posts=None, answers=None, scraper_error=None,
                  download_failures=None, rejects=None):
    return dict(
        scraper=FakeScraper(app_config.discovery, posts, error=scraper_error),
        registry=stub_registry(answers),
        downloader=FakeDownloader(app_config.download.directory, download_failures),
        processor=FakeProcessor(rejects),
    )


class TestBuildPipeline:

    def test_full_stage_sequence(self, app_config):
        executor = build_pipeline(app_config, **collaborators(app_config))
        assert executor.get_stage_names() == ["discovery", "resolution", "download", "processing", "snapshot"]

    def test_without_processing(self, app_config):
        app_config.pipeline = {'run_processing': False}
        executor = build_pipeline(app_config, **collaborators(app_config))
        assert executor.get_stage_names() == ["discovery", "resolution", "download"]

    def test_default_collaborators(self, app_config):
        executor = build_pipeline(app_config)
        assert len(executor) == 5


class TestRunPipeline:

    @pytest.mark.asyncio
    async def test_one_failing_post_does_not_affect_others(self, app_config):
        posts = [make_post(i) for i in range(1, 6)]
        report = await run_pipeline(
            app_config, **collaborators(app_config, posts, answers={posts[2].url: broken(posts[2].url)})
        )

        assert isinstance(report, RunReport)
        assert [p.permalink for p in report.accepted] == [posts[i].permalink for i in (0, 1, 3, 4)]
        assert report.discovered == 5
        assert report.resolved == 4
        assert report.downloaded == 4
        assert len(report.failures) == 1
        assert report.failures[0].post == posts[2]

        saved = list(PostStore().load(app_config.accepted_snapshot_path()))
        assert saved == report.accepted
        assert report.snapshot_path == app_config.accepted_snapshot_path()

    @pytest.mark.asyncio
    async def test_gallery_posts_fan_out(self, app_config):
        gallery = make_post(1, url="https://i.redd.it/gallery")
        images = ["https://i.redd.it/left.jpg", "https://i.redd.it/right.jpg"]
        report = await run_pipeline(
            app_config, **collaborators(app_config, [gallery, make_post(2)], answers={gallery.url: images})
        )

        assert [p.image_url for p in report.accepted] == images + [make_post(2).url]
        assert all(p.title == gallery.title for p in report.accepted[:2])
        assert report.resolved == 3

    @pytest.mark.asyncio
    async def test_unsupported_host_never_downloaded(self, app_config):
        foreign = make_post(1, url="https://www.flickr.com/photos/a/1")
        parts = collaborators(app_config, [foreign, make_post(2)])

        report = await run_pipeline(app_config, **parts)

        assert parts['downloader'].fetched == [make_post(2).url]
        assert [r.post for r in report.unsupported] == [foreign]
        assert report.failures == []

    @pytest.mark.asyncio
    async def test_order_preserved_with_worker_pool(self, app_config):
        app_config.pipeline = {'max_workers': 4}
        posts = [make_post(i) for i in range(1, 11)]

        report = await run_pipeline(app_config, **collaborators(app_config, posts))

        assert [p.permalink for p in report.accepted] == [p.permalink for p in posts]

    @pytest.mark.asyncio
    async def test_discovery_failure_halts_run(self, app_config):
        parts = collaborators(app_config, scraper_error=DiscoveryError("listing unavailable"))

        with pytest.raises(DiscoveryError):
            await run_pipeline(app_config, **parts)

        assert parts['downloader'].fetched == []
        assert not app_config.accepted_snapshot_path().exists()

    @pytest.mark.asyncio
    async def test_empty_discovery_stops_after_discovery(self, app_config):
        parts = collaborators(app_config, posts=[])

        report = await run_pipeline(app_config, **parts)

        assert report.discovered == 0
        assert report.snapshot_path is None
        assert report.metrics.halted_at == "resolution"
        assert parts['downloader'].fetched == []
        assert not app_config.accepted_snapshot_path().exists()

    @pytest.mark.asyncio
    async def test_resume_uses_discovered_snapshot(self, app_config):
        post = make_post(1)
        PostStore().save(
            SceneCollection([ResolvedPost.from_post(post, post.url), make_post(2)]),
            app_config.discovered_snapshot_path()
        )
        app_config.pipeline = {'mode': "resume"}
        parts = collaborators(app_config, [make_post(7)])

        report = await run_pipeline(app_config, **parts)

        assert parts['scraper'].calls == 0
        assert report.discovered == 2
        assert [p.permalink for p in report.accepted] == [post.permalink, make_post(2).permalink]

    @pytest.mark.asyncio
    async def test_resume_without_snapshot_fails(self, app_config):
        app_config.pipeline = {'mode': "resume"}

        with pytest.raises(SnapshotError):
            await run_pipeline(app_config, **collaborators(app_config))

    @pytest.mark.asyncio
    async def test_download_only_run(self, app_config):
        app_config.pipeline = {'run_processing': False}
        parts = collaborators(app_config, [make_post(1), make_post(2)])

        report = await run_pipeline(app_config, **parts)

        assert report.processing_ran is False
        assert report.downloaded == 2
        assert report.accepted == []
        assert report.snapshot_path is None
        assert parts['processor'].processed == []
        assert not app_config.accepted_snapshot_path().exists()

    @pytest.mark.asyncio
    async def test_rerun_hits_download_cache(self, app_config):
        posts = [make_post(1), make_post(2)]
        await run_pipeline(app_config, **collaborators(app_config, posts))

        report = await run_pipeline(app_config, **collaborators(app_config, posts))

        assert report.cache_hits == 2
        assert all(isinstance(p, ProcessedPost) for p in report.accepted)


class HangingDownloader(FakeDownloader):
    """Blocks on one URL well past the configured item timeout."""

    def __init__(self, directory, hang_url: str):
        super().__init__(directory)
        self.hang_url = hang_url
        self.never_set = threading.Event()

    def fetch(self, url: str):
        if url == self.hang_url:
            self.never_set.wait(3)
        return super().fetch(url)


def test_hung_download_does_not_stall_run(app_config):
    app_config.pipeline = {'item_timeout': 0.2}
    posts = [make_post(1), make_post(2), make_post(3)]
    parts = collaborators(app_config, posts)
    parts['downloader'] = HangingDownloader(app_config.download.directory, posts[1].url)

    started = time.monotonic()
    report = asyncio.run(run_pipeline(app_config, **parts))

    assert time.monotonic() - started < 1.5
    assert [p.permalink for p in report.accepted] == [posts[0].permalink, posts[2].permalink]
    assert report.failures[0].post.permalink == posts[1].permalink
