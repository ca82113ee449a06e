"""
Tests for the reddit gallery resolver.
"""

import pytest
from unittest.mock import Mock

from stereocrawl.resolvers import RedditGalleryResolver, ResolverError


def listing(post_data):
    return [{'kind': 'Listing', 'data': {'children': [{'kind': 't3', 'data': post_data}]}}, {}]


GALLERY_POST = {
    'id': 'abc123',
    'url': 'https://www.reddit.com/gallery/abc123',
    'gallery_data': {'items': [
        {'media_id': 'zzz', 'id': 3},
        {'media_id': 'aaa', 'id': 1},
        {'media_id': 'failed', 'id': 2},
        {'media_id': 'mmm', 'id': 4},
    ]},
    'media_metadata': {
        'aaa': {'status': 'valid', 'e': 'Image', 'm': 'image/jpg'},
        'zzz': {'status': 'valid', 'e': 'Image', 'm': 'image/png'},
        'failed': {'status': 'failed'},
        'mmm': {'status': 'valid', 'e': 'AnimatedImage', 'm': 'video/mp4'},
    },
}


def json_response(payload):
    response = Mock(ok=True, status_code=200)
    response.json.return_value = payload
    return response


class TestRedditGalleryResolver:

    @pytest.mark.parametrize("url,expected", [
        ("https://www.reddit.com/gallery/abc123", "abc123"),
        ("https://www.reddit.com/r/crossview/comments/abc123/some_title/", "abc123"),
        ("https://reddit.com/comments/abc123", "abc123"),
        ("https://www.reddit.com/r/crossview/", None),
    ])
    def test_post_id(self, url, expected):
        assert RedditGalleryResolver.post_id(url) == expected

    def test_gallery_keeps_item_order(self):
        session = Mock()
        session.get.return_value = json_response(listing(GALLERY_POST))
        resolver = RedditGalleryResolver(session=session)

        urls = resolver.resolve("https://www.reddit.com/gallery/abc123")

        assert urls == ["https://i.redd.it/zzz.png", "https://i.redd.it/aaa.jpg"]
        assert session.get.call_args.args[0] == "https://www.reddit.com/comments/abc123.json"

    def test_non_gallery_post_with_direct_image(self):
        session = Mock()
        session.get.return_value = json_response(listing({
            'id': 'abc123',
            'url_overridden_by_dest': 'https://i.redd.it/single.jpg',
        }))
        resolver = RedditGalleryResolver(session=session)

        assert resolver.resolve("https://www.reddit.com/r/crossview/comments/abc123/x/") == [
            "https://i.redd.it/single.jpg"
        ]

    def test_text_post_yields_nothing(self):
        session = Mock()
        session.get.return_value = json_response(listing({'id': 'abc123', 'url': 'https://www.reddit.com/r/crossview/comments/abc123/x/'}))
        resolver = RedditGalleryResolver(session=session)

        assert resolver.resolve("https://www.reddit.com/r/crossview/comments/abc123/x/") == []

    def test_subreddit_link_needs_no_request(self):
        session = Mock()
        resolver = RedditGalleryResolver(session=session)

        assert resolver.resolve("https://www.reddit.com/r/crossview/") == []
        session.get.assert_not_called()

    def test_invalid_json(self):
        session = Mock()
        response = Mock(ok=True, status_code=200)
        response.json.side_effect = ValueError("Expecting value")
        session.get.return_value = response
        resolver = RedditGalleryResolver(session=session)

        with pytest.raises(ResolverError, match="Invalid JSON"):
            resolver.resolve("https://www.reddit.com/gallery/abc123")

    def test_missing_post(self):
        session = Mock()
        session.get.return_value = json_response([{'data': {'children': []}}])
        resolver = RedditGalleryResolver(session=session)

        with pytest.raises(ResolverError, match="not found"):
            resolver.resolve("https://www.reddit.com/gallery/abc123")
