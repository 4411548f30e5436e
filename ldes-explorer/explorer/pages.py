"""
FILE DESCRIPTION: Page graph construction. Reads tree:relation edges, orders them by their
comparison value and walks the resulting fragments lazily.
KEY FUNCTIONS/CLASSES: sort_relations, read_relations, PageCursor
"""

import dataclasses
import logging
import time
from collections import deque
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterator, List, Optional

from rdflib import Literal

from explorer.core import POLL_INTERVAL
from explorer.models import CursorState, EventLogDescriptor, FragmentRef, Relation, Variant
from explorer.provider import QueryOptions, QueryProvider
from explorer.queries import TREE, relations_query

logger = logging.getLogger(__name__)

GENERIC_RELATION = str(TREE.Relation)


def comparison_key(value):
    """Numbers and datetimes compare by magnitude, anything else as text."""
    if isinstance(value, bool):
        return (2, str(value))
    if isinstance(value, (int, float, Decimal)):
        return (0, float(value))
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return (1, value.timestamp())
    if isinstance(value, date):
        return (1, datetime(value.year, value.month, value.day, tzinfo=timezone.utc).timestamp())
    return (2, str(value))


def sort_relations(relations: List[Relation]) -> List[Relation]:
    """
    Ascending by comparison value; relations without one come last.
    sorted() is stable, so ties keep discovery order.
    """
    def key(relation):
        if relation.comparison_value is None:
            return (1,)
        return (0,) + comparison_key(relation.comparison_value)
    return sorted(relations, key=key)


def native_value(term):
    if term is None:
        return None
    if isinstance(term, Literal):
        return term.toPython()
    return str(term)


def read_relations(provider: QueryProvider, node_url: str, fresh: bool = False) -> List[Relation]:
    """
    Relations of one node in discovery order, one per relation IRI.
    A relation typed both tree:Relation and a specific subtype keeps the subtype.
    """
    found = {}
    options = QueryOptions(lenient=True, fresh=fresh)
    for binding in provider.query_bindings(relations_query(node_url), [node_url], options):
        relation_id = str(binding["relation"])
        kind = str(binding["relationType"])
        existing = found.get(relation_id)
        if existing is None:
            found[relation_id] = Relation(
                relation_id=relation_id,
                relation_kind=kind,
                target_node=str(binding["node"]),
                comparison_value=native_value(binding.get("value")),
                path=native_value(binding.get("path")),
                source_node=node_url,
            )
        elif existing.relation_kind == GENERIC_RELATION and kind != GENERIC_RELATION:
            found[relation_id] = dataclasses.replace(existing, relation_kind=kind)
    return list(found.values())


class PageCursor:
    """
    FLOW: Seeds fragments from the views -> Yields them in relation order (marking the tail) ->
    Re-probes the tail for new relations once the known fragments are used up ->
    Ends, or in follow mode sleeps and re-yields the tail so new members surface.

    ContainerBased: fragments are the targets of the view's relations; the view is not a page.
    RelationBased: the view node is the first page, then nodes breadth-first by sorted relations.
    """

    def __init__(self, descriptor: EventLogDescriptor, provider: QueryProvider,
                 follow: bool = False, poll_interval: float = POLL_INTERVAL, sleep=time.sleep):
        if descriptor.variant is Variant.FLAT:
            raise ValueError("Flat streams have no page graph")
        self.descriptor = descriptor
        self.provider = provider
        self.follow = follow
        self.poll_interval = poll_interval
        self._sleep = sleep

        self.state = CursorState.PENDING
        self.relations: List[Relation] = []
        self._pending = deque()
        self._seen = set()
        self._last: Optional[FragmentRef] = None

    @property
    def container_based(self) -> bool:
        return self.descriptor.variant is Variant.CONTAINER_BASED

    def __iter__(self) -> Iterator[FragmentRef]:
        if self.state is not CursorState.PENDING:
            raise RuntimeError("PageCursor is forward-only and cannot be restarted")

        self.state = CursorState.WALKING
        self._seed()
        while True:
            while self._pending:
                fragment = self._pending.popleft()
                if not self.container_based:
                    self._expand(fragment.url)
                fragment = dataclasses.replace(fragment, is_tail=not self._pending)
                self._last = fragment
                logger.info(f"[PAGES] fragment {fragment.url}" + (" (tail)" if fragment.is_tail else ""))
                yield fragment

            self.state = CursorState.REPROBING
            if self._reprobe():
                self.state = CursorState.WALKING
                continue

            if not self.follow:
                self.state = CursorState.EXHAUSTED
                logger.info(f"[PAGES] page graph exhausted after {len(self._seen)} fragment(s)")
                return

            while True:
                self._sleep(self.poll_interval)
                if self._reprobe():
                    break
                if self._last is not None:
                    # Nothing new in the graph; revisit the tail for appended members
                    self.state = CursorState.WALKING
                    yield self._last
                    self.state = CursorState.REPROBING
            self.state = CursorState.WALKING

    def _seed(self):
        views = self.descriptor.views
        if len(views) > 1:
            logger.info(f"[PAGES] {len(views)} views declared; walking all of them in discovery order")

        if self.container_based:
            found = []
            for view in views:
                found.extend(read_relations(self.provider, view.view_url))
            self._enqueue_relations(found)
        else:
            for view in views:
                self._enqueue(FragmentRef(url=view.view_url))

    def _expand(self, node_url: str, fresh: bool = False) -> int:
        return self._enqueue_relations(read_relations(self.provider, node_url, fresh=fresh))

    def _reprobe(self) -> int:
        """Fresh re-read of the relations that could reveal newer fragments."""
        if self.container_based:
            found = []
            for view in self.descriptor.views:
                found.extend(read_relations(self.provider, view.view_url, fresh=True))
            added = self._enqueue_relations(found)
        elif self._last is not None:
            added = self._expand(self._last.url, fresh=True)
        else:
            added = 0
        if added:
            logger.info(f"[PAGES] re-probe found {added} new fragment(s)")
        return added

    def _enqueue_relations(self, relations: List[Relation]) -> int:
        added = 0
        for relation in sort_relations(relations):
            if self._enqueue(FragmentRef(url=relation.target_node, relation=relation)):
                self.relations.append(relation)
                added += 1
        return added

    def _enqueue(self, fragment: FragmentRef) -> bool:
        if fragment.url in self._seen:
            return False
        self._seen.add(fragment.url)
        self._pending.append(fragment)
        return True
