"""
Tests for the imgur resolver, including album fan-out.
"""

import pytest
from unittest.mock import Mock

from stereocrawl.resolvers import ImgurResolver, ResolverError


ALBUM_PAGE = """
<html><head>
<meta property="og:title" content="Three crossview shots">
<meta property="og:image" content="https://i.imgur.com/First01.jpg?fb">
<meta property="og:image" content="https://i.imgur.com/Second2.png">
<meta property="og:image" content="https://i.imgur.com/First01.jpg">
<meta property="og:image" content="https://i.imgur.com/Third03.jpg?fbplay">
</head><body></body></html>
"""


def page_response(text, status_code=200):
    return Mock(ok=200 <= status_code < 300, status_code=status_code, text=text)


@pytest.fixture
def session():
    return Mock()


class TestImgurResolver:

    def test_single_image_maps_to_direct_link(self, session):
        resolver = ImgurResolver(session=session)
        assert resolver.resolve("https://imgur.com/AbCdE12") == ["https://i.imgur.com/AbCdE12.jpg"]
        session.get.assert_not_called()

    def test_single_image_keeps_extension(self, session):
        resolver = ImgurResolver(session=session)
        assert resolver.resolve("https://imgur.com/AbCdE12.png") == ["https://i.imgur.com/AbCdE12.png"]

    def test_video_links_yield_nothing(self, session):
        resolver = ImgurResolver(session=session)
        assert resolver.resolve("https://imgur.com/AbCdE12.gifv") == []

    def test_album_fans_out_in_page_order(self, session):
        session.get.return_value = page_response(ALBUM_PAGE)
        resolver = ImgurResolver(session=session)

        urls = resolver.resolve("https://imgur.com/a/xYz12")

        assert urls == [
            "https://i.imgur.com/First01.jpg",
            "https://i.imgur.com/Second2.png",
            "https://i.imgur.com/Third03.jpg",
        ]
        assert session.get.call_args.args[0] == "https://imgur.com/a/xYz12"

    def test_gallery_slug_with_title(self, session):
        session.get.return_value = page_response(ALBUM_PAGE)
        resolver = ImgurResolver(session=session)
        assert len(resolver.resolve("https://imgur.com/gallery/some-title-words-xYz12")) == 3

    def test_album_without_images_is_an_error(self, session):
        session.get.return_value = page_response("<html><head></head></html>")
        resolver = ImgurResolver(session=session)

        with pytest.raises(ResolverError, match="No images"):
            resolver.resolve("https://imgur.com/a/xYz12")

    def test_album_http_error(self, session):
        session.get.return_value = page_response("", status_code=404)
        resolver = ImgurResolver(session=session)

        with pytest.raises(ResolverError, match="HTTP 404"):
            resolver.resolve("https://imgur.com/a/xYz12")

    @pytest.mark.parametrize("url", ["https://imgur.com/", "https://imgur.com/user/someone/favorites"])
    def test_unrecognised_paths(self, session, url):
        assert ImgurResolver(session=session).resolve(url) == []
