"""
Resolver doubles for pipeline tests.
"""

from typing import Dict, List, Optional, Set, Union

from stereocrawl.resolvers import BaseResolver, ResolverRegistry
from stereocrawl.resolvers.base import ResolverError


class StubResolver(BaseResolver):
    """Answers from a fixed table; unknown URLs resolve to themselves."""

    name = "stub"

    def __init__(self, hosts: Set[str], answers: Optional[Dict[str, Union[List[str], Exception]]] = None):
        super().__init__()
        self.hosts = set(hosts)
        self.answers = answers or {}
        self.calls: List[str] = []

    def resolve(self, url: str) -> List[str]:
        self.calls.append(url)
        answer = self.answers.get(url, [url])
        if isinstance(answer, Exception):
            raise answer
        return list(answer)


def stub_registry(answers=None, hosts=("i.redd.it",)) -> ResolverRegistry:
    registry = ResolverRegistry()
    registry.register(StubResolver(set(hosts), answers))
    return registry


def broken(url: str) -> ResolverError:
    return ResolverError("landing page returned HTTP 500", url=url, resolver="stub")
