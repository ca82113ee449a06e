"""
stereocrawl - cross-view stereo image crawler.

Discovers candidate posts on a subreddit, resolves their links to direct
image URLs, downloads and validates the images, and writes the accepted
posts to a JSON snapshot.
"""

__version__ = "0.1.0"
