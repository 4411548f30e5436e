"""
FILE DESCRIPTION: Member enumeration, one strategy per fragmentation variant.
KEY FUNCTIONS/CLASSES: TraversalStrategy, ContainerStrategy, RelationStrategy, FlatStrategy, strategy_for

The strategy is chosen once after classification and held for the whole traversal.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterator, List

from explorer.models import EventLogDescriptor, FragmentRef, MemberRef, Metadata, Variant
from explorer.pages import PageCursor, native_value
from explorer.provider import QueryOptions, QueryProvider
from explorer import queries

logger = logging.getLogger(__name__)


class TraversalStrategy(ABC):
    variant: Variant

    def __init__(self, provider: QueryProvider):
        self.provider = provider

    @abstractmethod
    def fragments(self, descriptor: EventLogDescriptor, follow: bool = False) -> Iterator[FragmentRef]:
        """Fragments in page graph order."""
        pass

    @abstractmethod
    def list_members(self, fragment: FragmentRef) -> List[MemberRef]:
        """Members of one fragment in listing order. An empty list is a valid page."""
        pass

    def _log_page(self, fragment: FragmentRef, members: List[MemberRef]):
        if not members:
            logger.debug(f"[MEMBERS] empty page: {fragment.url}")
        else:
            logger.info(f"[MEMBERS] {len(members)} member(s) in {fragment.url}")


class ContainerStrategy(TraversalStrategy):
    """
    LDES in LDP: every fragment is an ldp:BasicContainer.
    The tail container is still written to, so listing it always bypasses caches.
    """
    variant = Variant.CONTAINER_BASED

    def __init__(self, provider: QueryProvider, **cursor_options):
        super().__init__(provider)
        self.cursor_options = cursor_options
        self.cursor = None

    def fragments(self, descriptor, follow=False):
        self.cursor = PageCursor(descriptor, self.provider, follow=follow, **self.cursor_options)
        return iter(self.cursor)

    def list_members(self, fragment):
        options = QueryOptions(lenient=False, fresh=fragment.is_tail)
        members = []
        seen = set()
        query = queries.container_members_query(fragment.url)
        for binding in self.provider.query_bindings(query, [fragment.url], options):
            url = str(binding["member"])
            if url in seen:
                continue
            seen.add(url)
            members.append(MemberRef(url=url, metadata=Metadata(date_time=native_value(binding.get("dateTime")))))
        self._log_page(fragment, members)
        return members


class RelationStrategy(TraversalStrategy):
    """TREE nodes linked by typed relations; members are tree:member links of each node."""
    variant = Variant.RELATION_BASED

    def __init__(self, provider: QueryProvider, **cursor_options):
        super().__init__(provider)
        self.cursor_options = cursor_options
        self.cursor = None

    def fragments(self, descriptor, follow=False):
        self.cursor = PageCursor(descriptor, self.provider, follow=follow, **self.cursor_options)
        return iter(self.cursor)

    def list_members(self, fragment):
        members = _stream_members(self.provider, fragment)
        self._log_page(fragment, members)
        return members


class FlatStrategy(TraversalStrategy):
    """No fragmentation: the root document is the only page."""
    variant = Variant.FLAT

    def __init__(self, provider: QueryProvider, **cursor_options):
        super().__init__(provider)

    def fragments(self, descriptor, follow=False):
        yield FragmentRef(url=descriptor.root_url, is_tail=True)

    def list_members(self, fragment):
        members = _stream_members(self.provider, fragment)
        self._log_page(fragment, members)
        return members


def _stream_members(provider: QueryProvider, fragment: FragmentRef) -> List[MemberRef]:
    # Served from the document already read for the fragment's relations
    options = QueryOptions(lenient=True)
    members = []
    seen = set()
    for binding in provider.query_bindings(queries.stream_members_query(), [fragment.url], options):
        url = str(binding["member"])
        if url not in seen:
            seen.add(url)
            members.append(MemberRef(url=url))
    return members


STRATEGIES = {
    Variant.CONTAINER_BASED: ContainerStrategy,
    Variant.RELATION_BASED: RelationStrategy,
    Variant.FLAT: FlatStrategy,
}


def strategy_for(variant: Variant, provider: QueryProvider, **cursor_options) -> TraversalStrategy:
    return STRATEGIES[variant](provider, **cursor_options)
