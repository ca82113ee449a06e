"""
Tests for the per-stage post values and snapshot collections.
"""

import pytest
from dataclasses import FrozenInstanceError
from datetime import datetime, timezone
from pathlib import Path

from stereocrawl.models import (
    Post, ResolvedPost, DownloadedPost, ProcessedPost, SceneCollection, SkipRecord,
    accepted_only, find_by_permalink
)
from tests.conftest import make_post


class TestPost:
    """Test the discovered post value."""

    def test_derived_fields(self):
        post = make_post(1, url="https://I.Imgur.com/abcde.jpg")
        assert post.host == "i.imgur.com"
        assert post.created_at == datetime(2022, 1, 1, 1, 0, tzinfo=timezone.utc)
        assert post.created_year == 2022
        assert post.created_iso == "2022-01-01T01:00:00Z"

    def test_posts_are_immutable(self):
        post = make_post(1)
        with pytest.raises(FrozenInstanceError):
            post.score = 5

    def test_describe_includes_host_score_and_title(self):
        post = make_post(2, url="https://imgur.com/abcde", score=42)
        assert post.describe() == "imgur.com: [42] Cross-view scene 2"

    def test_from_dict_picks_richest_type(self):
        base = make_post(1).to_dict()

        assert type(Post.from_dict(base)) is Post

        resolved = Post.from_dict({**base, 'image_url': 'https://i.redd.it/x.jpg'})
        assert type(resolved) is ResolvedPost
        assert resolved.image_url == 'https://i.redd.it/x.jpg'

        processed = Post.from_dict({**base, 'image_url': 'https://i.redd.it/x.jpg', 'width': 800, 'height': 400})
        assert type(processed) is ProcessedPost
        assert (processed.width, processed.height) == (800, 400)

    def test_from_dict_ignores_unknown_keys(self):
        record = {**make_post(1).to_dict(), 'flair': 'Animal'}
        assert Post.from_dict(record) == make_post(1)

    def test_from_dict_missing_field(self):
        record = make_post(1).to_dict()
        del record['permalink']
        with pytest.raises(KeyError, match="permalink"):
            Post.from_dict(record)


class TestStageTransitions:
    """Each stage builds the next value without touching the previous one."""

    def test_resolved_inherits_descriptive_fields(self):
        post = make_post(3)
        resolved = ResolvedPost.from_post(post, "https://i.redd.it/a.jpg")
        assert resolved.base_fields() == post.base_fields()
        assert resolved.image_url == "https://i.redd.it/a.jpg"

    def test_downloaded_to_processed(self, tmp_path):
        resolved = ResolvedPost.from_post(make_post(3), "https://i.redd.it/a.jpg")
        downloaded = DownloadedPost.from_resolved(resolved, tmp_path / "a.jpg", from_cache=True)
        assert downloaded.local_path == Path(tmp_path / "a.jpg")
        assert downloaded.from_cache is True

        processed = ProcessedPost.from_downloaded(downloaded, 640, 320)
        assert processed.to_dict() == {
            **make_post(3).to_dict(),
            'image_url': "https://i.redd.it/a.jpg",
            'width': 640,
            'height': 320,
        }

    @pytest.mark.parametrize("width,height", [(0, 100), (100, -1), (True, 10), (10.5, 10)])
    def test_processed_requires_positive_integer_dimensions(self, width, height):
        with pytest.raises(ValueError):
            ProcessedPost(image_url="https://i.redd.it/a.jpg", width=width, height=height,
                          **make_post(1).base_fields())

    def test_processed_requires_image_url(self):
        with pytest.raises(ValueError, match="image URL"):
            ProcessedPost(image_url="", width=10, height=10, **make_post(1).base_fields())


class TestSceneCollection:
    """Test the ordered snapshot collection."""

    def test_to_dict_and_back(self):
        posts = [
            make_post(1),
            ResolvedPost.from_post(make_post(2), "https://i.redd.it/b.jpg"),
            ProcessedPost(image_url="https://i.redd.it/c.jpg", width=10, height=5, **make_post(3).base_fields()),
        ]
        collection = SceneCollection(posts)
        assert SceneCollection.from_dict(collection.to_dict()) == collection

    def test_null_scenes_is_empty(self):
        assert len(SceneCollection.from_dict({'scenes': None})) == 0

    @pytest.mark.parametrize("document", [[], {}, {'scenes': {}}, {'scenes': [1]}])
    def test_rejects_malformed_documents(self, document):
        with pytest.raises(ValueError):
            SceneCollection.from_dict(document)

    def test_sequence_protocol(self):
        collection = SceneCollection()
        collection.extend([make_post(1), make_post(2)])
        assert len(collection) == 2
        assert collection[1] == make_post(2)
        assert [p.title for p in collection] == ["Cross-view scene 1", "Cross-view scene 2"]


class TestHelpers:

    def test_accepted_only_keeps_order(self):
        a = ProcessedPost(image_url="https://i.redd.it/a.jpg", width=2, height=1, **make_post(1).base_fields())
        b = ProcessedPost(image_url="https://i.redd.it/b.jpg", width=2, height=1, **make_post(3).base_fields())
        assert accepted_only([a, make_post(2), b]) == [a, b]

    def test_find_by_permalink(self):
        posts = [make_post(1), make_post(2)]
        assert find_by_permalink(posts, make_post(2).permalink) == make_post(2)
        assert find_by_permalink(posts, "missing") is None

    def test_skip_record_description(self):
        record = SkipRecord(post=make_post(1, url="https://example.com/x", score=7),
                            stage="resolution", reason="unsupported source", unsupported=True)
        assert record.describe() == "[resolution] example.com: [7] Cross-view scene 1 - unsupported source"
