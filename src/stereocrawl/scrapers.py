#!/usr/bin/env python3
"""
Reddit discovery via PRAW.

This module provides the PrawScraper class, which authenticates against the
Reddit API and reads one subreddit listing into a list of Post values. Any
failure to reach Reddit or to authenticate aborts discovery as a whole; no
partial listing is ever returned.
"""

import logging
from typing import Any, List, Optional

import praw
import prawcore

from stereocrawl.core.config.models import DiscoveryConfig
from stereocrawl.core.exceptions import (
    AuthenticationError, DiscoveryError, ErrorCode, ErrorContext
)
from stereocrawl.models import Post
from stereocrawl.utils import api_retry


logger = logging.getLogger(__name__)

REDDIT_BASE_URL = "https://www.reddit.com"

AUTH_EXCEPTIONS = (
    prawcore.exceptions.OAuthException,
    prawcore.exceptions.InvalidToken,
)


class PrawScraper:
    """
    Reddit scraper using PRAW for authenticated API access.

    A script application is used; when a username and password are configured
    the client runs as that user, otherwise it runs application-only.
    """

    def __init__(self, config: DiscoveryConfig, reddit: Optional[praw.Reddit] = None):
        """
        Initialize PrawScraper.

        Args:
            config: Discovery configuration with credentials and listing settings
            reddit: Pre-built client, mainly for tests; built from config when omitted

        Raises:
            AuthenticationError: If credentials are missing
        """
        self.config = config
        self.logged_in = bool(config.username and config.password)

        if reddit is not None:
            self.reddit = reddit
            return

        if not config.has_credentials():
            raise AuthenticationError(
                "Missing Reddit API credentials: client_id and client_secret are required",
                error_code=ErrorCode.AUTH_MISSING_CREDENTIALS,
                auth_method="script"
            )

        kwargs = {
            'client_id': config.client_id,
            'client_secret': config.client_secret,
            'user_agent': config.user_agent,
            'timeout': config.timeout,
        }
        if self.logged_in:
            kwargs['username'] = config.username
            kwargs['password'] = config.password

        self.reddit = praw.Reddit(**kwargs)

    def validate_authentication(self) -> None:
        """
        Make one authenticated call to confirm the credentials work.

        Raises:
            AuthenticationError: If Reddit rejects the credentials
            DiscoveryError: If Reddit cannot be reached
        """
        method = "password" if self.logged_in else "client_credentials"
        try:
            if self.logged_in:
                if self.reddit.user.me() is None:
                    raise AuthenticationError(
                        "Reddit did not return the logged-in user",
                        auth_method=method
                    )
            else:
                self.reddit.auth.scopes()
        except AUTH_EXCEPTIONS as e:
            raise AuthenticationError(
                f"Reddit API authentication failed: {e}",
                auth_method=method,
                cause=e
            )
        except prawcore.exceptions.ResponseException as e:
            status = getattr(getattr(e, 'response', None), 'status_code', None)
            if status in (401, 403):
                raise AuthenticationError(
                    f"Reddit API authentication failed (HTTP {status})",
                    auth_method=method,
                    cause=e
                )
            raise DiscoveryError(f"Reddit API error during authentication: {e}", cause=e)
        except prawcore.exceptions.PrawcoreException as e:
            raise DiscoveryError(
                f"Cannot reach Reddit: {e}",
                error_code=ErrorCode.NETWORK_CONNECTION_FAILED,
                cause=e
            )

        logger.debug(f"Authenticated with Reddit ({method})")

    def fetch_posts(self) -> List[Post]:
        """
        Read the configured listing and convert it to posts.

        Returns:
            Posts in listing order, after self-post and year filtering

        Raises:
            AuthenticationError: If authentication fails
            DiscoveryError: If the listing cannot be read
        """
        self.validate_authentication()

        subreddit = self.config.subreddit
        context = ErrorContext(operation="discovery", stage="discovery", target=f"r/{subreddit}")
        try:
            submissions = self._fetch_listing()
        except AUTH_EXCEPTIONS as e:
            raise AuthenticationError(f"Authentication failed while reading r/{subreddit}: {e}", cause=e)
        except (prawcore.exceptions.NotFound, prawcore.exceptions.Redirect) as e:
            raise DiscoveryError(
                f"Subreddit r/{subreddit} not found",
                error_code=ErrorCode.TARGET_NOT_FOUND,
                context=context,
                cause=e
            )
        except prawcore.exceptions.Forbidden as e:
            raise DiscoveryError(
                f"Subreddit r/{subreddit} is private or restricted",
                error_code=ErrorCode.TARGET_ACCESS_DENIED,
                context=context,
                cause=e
            )
        except prawcore.exceptions.PrawcoreException as e:
            raise DiscoveryError(
                f"Failed to read r/{subreddit}: {e}",
                error_code=ErrorCode.NETWORK_CONNECTION_FAILED,
                context=context,
                cause=e
            )

        posts = []
        for submission in submissions:
            if getattr(submission, 'is_self', False) and not self.config.include_self_posts:
                logger.debug(f"Skipping self post: {submission.title}")
                continue

            post = self.submission_to_post(submission)
            if self.config.year is not None and post.created_year != self.config.year:
                logger.debug(f"Skipping post from {post.created_year}: {post.title}")
                continue

            logger.debug(f"Discovered: [{post.score}] {post.title}")
            posts.append(post)

        logger.info(f"Discovered {len(posts)} post(s) in r/{subreddit} ({self.describe_listing()})")
        return posts

    @api_retry(max_retries=3, initial_delay=0.7)
    def _fetch_listing(self) -> List[Any]:
        """Materialize the listing so transport errors surface inside the retry."""
        subreddit = self.reddit.subreddit(self.config.subreddit)
        listing = getattr(subreddit, self.config.listing)

        if self.config.listing in ('top', 'controversial'):
            return list(listing(time_filter=self.config.time_filter, limit=self.config.limit))
        return list(listing(limit=self.config.limit))

    @staticmethod
    def submission_to_post(submission: Any) -> Post:
        """Convert a PRAW submission to a Post."""
        permalink = submission.permalink or ""
        if permalink.startswith('/'):
            permalink = REDDIT_BASE_URL + permalink

        return Post(
            url=submission.url,
            title=submission.title,
            permalink=permalink,
            score=int(getattr(submission, 'score', 0) or 0),
            created_utc=float(submission.created_utc)
        )

    def describe_listing(self) -> str:
        text = self.config.listing
        if self.config.listing in ('top', 'controversial'):
            text += f"/{self.config.time_filter}"
        text += f", limit {self.config.limit}"
        if self.config.year is not None:
            text += f", year {self.config.year}"
        return text
