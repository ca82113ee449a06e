"""
Base Resolver Architecture

Resolvers turn the link a post was published with into the direct image URLs
behind it. Each resolver declares the hosts it understands; the registry maps
a URL's host to exactly one resolver. Links on hosts nobody registered for
resolve to an empty list, which the pipeline treats as "unsupported source"
rather than an error.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Set

import requests

from stereocrawl.core.config.models import DEFAULT_USER_AGENT
from stereocrawl.core.exceptions import StereoCrawlError, ErrorCode, ErrorContext
from stereocrawl.utils import url_host, api_retry


class ResolverError(StereoCrawlError):
    """Exception raised when a supported link cannot be resolved."""

    def __init__(self, message: str, url: Optional[str] = None, resolver: Optional[str] = None, **kwargs):
        context = kwargs.get('context') or ErrorContext(operation="resolve", stage="resolution")
        if url:
            context.url = url
        if resolver:
            context.user_context['resolver'] = resolver
        kwargs['context'] = context
        kwargs.setdefault('error_code', ErrorCode.NETWORK_INVALID_RESPONSE)
        super().__init__(message, **kwargs)


class BaseResolver(ABC):
    """
    Abstract base class for all resolvers.

    Subclasses set ``name`` and ``hosts`` and implement ``resolve``. Network
    access goes through ``fetch`` so that retries, timeouts and the User-Agent
    header are applied the same way everywhere.
    """

    name: str = "base"
    hosts: Set[str] = set()

    def __init__(self, session: Optional[requests.Session] = None, timeout: int = 30,
                 user_agent: str = DEFAULT_USER_AGENT):
        """
        Initialize the resolver.

        Args:
            session: HTTP session used for landing-page requests
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header sent with every request
        """
        self.session = session or requests.Session()
        self.timeout = timeout
        self.user_agent = user_agent
        self.logger = logging.getLogger(f"stereocrawl.resolvers.{self.name}")

    @abstractmethod
    def resolve(self, url: str) -> List[str]:
        """
        Resolve a source link to direct image URLs.

        Args:
            url: The link as published on the post

        Returns:
            Direct image URLs in display order (possibly empty)

        Raises:
            ResolverError: If the link is supported but resolution failed
        """
        pass

    def handles(self, url: str) -> bool:
        return url_host(url) in self.hosts

    def fetch(self, url: str, accept: str = "text/html") -> requests.Response:
        """
        GET a page with retries on transient transport errors.

        Raises:
            ResolverError: On a non-2xx response or when retries are exhausted
        """
        try:
            response = self._get(url, accept)
        except requests.RequestException as e:
            raise ResolverError(
                f"Request to {url_host(url)} failed: {e}",
                url=url, resolver=self.name,
                error_code=ErrorCode.NETWORK_CONNECTION_FAILED,
                cause=e
            )

        if not response.ok:
            raise ResolverError(
                f"HTTP {response.status_code} from {url_host(url)}",
                url=url, resolver=self.name
            )
        return response

    @api_retry(max_retries=3, initial_delay=0.7)
    def _get(self, url: str, accept: str) -> requests.Response:
        headers = {
            'User-Agent': self.user_agent,
            'Accept': accept,
        }
        return self.session.get(url, headers=headers, timeout=self.timeout)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', hosts={sorted(self.hosts)})"


class ResolverRegistry:
    """
    Registry mapping URL hosts to resolvers.

    Dispatch uses the lower-cased host of the URL with port and credentials
    stripped; every host maps to at most one resolver.
    """

    def __init__(self):
        self._resolvers: Dict[str, BaseResolver] = {}
        self._by_host: Dict[str, BaseResolver] = {}
        self.logger = logging.getLogger("stereocrawl.resolvers.registry")

    def register(self, resolver: BaseResolver) -> None:
        """
        Register a resolver for all of its hosts.

        A host already claimed by another resolver is taken over by the new
        one; the takeover is logged.
        """
        if resolver.name in self._resolvers:
            self.unregister(resolver.name)

        self._resolvers[resolver.name] = resolver
        for host in resolver.hosts:
            host = host.lower()
            previous = self._by_host.get(host)
            if previous is not None and previous is not resolver:
                self.logger.warning(f"Host {host} moved from resolver '{previous.name}' to '{resolver.name}'")
            self._by_host[host] = resolver

        self.logger.debug(f"Registered resolver: {resolver.name} ({', '.join(sorted(resolver.hosts))})")

    def unregister(self, name: str) -> bool:
        """
        Remove a resolver and the hosts it owns.

        Returns:
            True if a resolver was removed, False if the name was unknown
        """
        resolver = self._resolvers.pop(name, None)
        if resolver is None:
            return False

        for host in [h for h, r in self._by_host.items() if r is resolver]:
            del self._by_host[host]

        self.logger.debug(f"Unregistered resolver: {name}")
        return True

    def resolver_for(self, url: str) -> Optional[BaseResolver]:
        """Return the resolver responsible for the URL's host, if any."""
        return self._by_host.get(url_host(url))

    def resolve(self, url: str) -> List[str]:
        """
        Resolve a URL with the resolver registered for its host.

        Returns:
            Direct image URLs; empty when no resolver claims the host

        Raises:
            ResolverError: If the responsible resolver fails
        """
        resolver = self.resolver_for(url)
        if resolver is None:
            return []
        return resolver.resolve(url)

    def supported_hosts(self) -> List[str]:
        return sorted(self._by_host)

    def list_resolvers(self) -> List[BaseResolver]:
        return list(self._resolvers.values())

    def __contains__(self, host: str) -> bool:
        return host.lower() in self._by_host

    def __len__(self) -> int:
        return len(self._resolvers)


def create_default_registry(session: Optional[requests.Session] = None, timeout: int = 30,
                            user_agent: str = DEFAULT_USER_AGENT) -> ResolverRegistry:
    """
    Build a registry with the built-in resolvers sharing one HTTP session.

    Args:
        session: HTTP session; a new one is created when omitted
        timeout: Per-request timeout in seconds
        user_agent: User-Agent header for landing-page requests
    """
    from stereocrawl.resolvers.direct import DirectImageResolver
    from stereocrawl.resolvers.imgur import ImgurResolver
    from stereocrawl.resolvers.reddit import RedditGalleryResolver

    session = session or requests.Session()
    registry = ResolverRegistry()
    for resolver_class in (DirectImageResolver, ImgurResolver, RedditGalleryResolver):
        registry.register(resolver_class(session=session, timeout=timeout, user_agent=user_agent))
    return registry
