"""
FILE DESCRIPTION: Traversal facade. Composes link resolution, classification, page graph,
member enumeration and content extraction into one lazy member sequence.
KEY FUNCTIONS/CLASSES: LDESExplorer
"""

import logging
import time
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import Iterator, List, Optional, Tuple

from explorer.classifier import VariantClassifier
from explorer.core import POLL_INTERVAL, PREFETCH_WORKERS
from explorer.errors import MalformedMember
from explorer.materializer import ContentMaterializer
from explorer.members import TraversalStrategy, strategy_for
from explorer.models import (
    EventLogDescriptor, ExplorationSummary, FragmentRef, Member, MemberRef, Metadata, Variant
)
from explorer.pages import read_relations, sort_relations
from explorer.provider import QueryProvider
from explorer.resolver import LinkResolver
from explorer.transport import Transport

logger = logging.getLogger(__name__)


class LDESExplorer:
    """
    FLOW: Resolve artifact -> classify root -> select strategy -> walk fragments ->
    list members -> materialize (bounded prefetch, ordered emission) -> yield.

    Each call builds its own provider, so document caches and cursors are never shared
    between traversals. Discovery errors raise from the call itself; everything after
    that happens lazily while the caller iterates.
    """

    def __init__(self, transport: Optional[Transport] = None, provider_factory=None,
                 prefetch: int = PREFETCH_WORKERS, poll_interval: float = POLL_INTERVAL, sleep=time.sleep):
        self.transport = transport or Transport()
        self.provider_factory = provider_factory or (lambda: QueryProvider(self.transport))
        self.resolver = LinkResolver(self.transport)
        self.prefetch = max(1, prefetch)
        self.poll_interval = poll_interval
        self.sleep = sleep

    # === ENTRY POINTS ===

    def explore(self, artifact_url: str, follow: bool = False) -> Iterator[Member]:
        """
        Members of the stream behind artifact_url in page graph order.
        With follow=True the tail keeps being polled until the caller stops iterating.
        """
        provider = self.provider_factory()
        descriptor = self.discover(artifact_url, provider)
        strategy = self._strategy(descriptor.variant, provider)
        return (member for member, _ in self._walk(strategy, strategy.fragments(descriptor, follow=follow)))

    def members_of(self, fragment_url: str, variant: Variant = Variant.CONTAINER_BASED,
                   is_tail: bool = True) -> Iterator[Tuple[Member, Optional[Metadata]]]:
        """Members of one fragment with their metadata (ContainerBased only carries timestamps)."""
        provider = self.provider_factory()
        strategy = self._strategy(variant, provider)
        return self._walk(strategy, iter([FragmentRef(url=fragment_url, is_tail=is_tail)]))

    def describe(self, artifact_url: str) -> ExplorationSummary:
        """Stream, variant, first view and its ordered relations, without reading members."""
        provider = self.provider_factory()
        resolution = self.resolver.resolve(artifact_url)
        descriptor = VariantClassifier(provider).classify(resolution.root_url)
        view = descriptor.views[0] if descriptor.views else None
        relations = sort_relations(read_relations(provider, view.view_url)) if view else []
        return ExplorationSummary(
            ldes=descriptor.root_url,
            variant=descriptor.variant,
            view=view,
            relations=tuple(relations),
            event_log_template_url=resolution.event_log_template_url,
        )

    def discover(self, artifact_url: str, provider: QueryProvider) -> EventLogDescriptor:
        resolution = self.resolver.resolve(artifact_url)
        return VariantClassifier(provider).classify(resolution.root_url)

    # === TRAVERSAL ===

    def _strategy(self, variant: Variant, provider: QueryProvider) -> TraversalStrategy:
        return strategy_for(variant, provider, poll_interval=self.poll_interval, sleep=self.sleep)

    def _walk(self, strategy: TraversalStrategy, fragments) -> Iterator[Tuple[Member, Optional[Metadata]]]:
        materializer = ContentMaterializer(strategy.provider)
        handled = set()
        count = 0
        for fragment in fragments:
            refs = [ref for ref in strategy.list_members(fragment) if ref.url not in handled]
            handled.update(ref.url for ref in refs)
            for ref, member in self._materialize_page(materializer, refs):
                count += 1
                yield member, ref.metadata
        logger.info(f"[EXPLORE] traversal finished, {count} member(s) emitted")

    def _materialize_page(self, materializer: ContentMaterializer, refs: List[MemberRef]):
        """
        Up to self.prefetch members in flight; results come back in listing order.
        Closing the generator cancels what has not started yet.
        """
        if self.prefetch == 1 or len(refs) <= 1:
            for ref in refs:
                member = self._materialize_one(materializer, ref)
                if member is not None:
                    yield ref, member
            return

        pending = iter(refs)
        window = deque()
        executor = ThreadPoolExecutor(max_workers=self.prefetch, thread_name_prefix="materialize")
        try:
            for ref in pending:
                window.append((ref, executor.submit(self._materialize_one, materializer, ref)))
                if len(window) >= self.prefetch:
                    break
            while window:
                ref, future = window.popleft()
                member = future.result()
                nxt = next(pending, None)
                if nxt is not None:
                    window.append((nxt, executor.submit(self._materialize_one, materializer, nxt)))
                if member is not None:
                    yield ref, member
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

    @staticmethod
    def _materialize_one(materializer: ContentMaterializer, ref: MemberRef) -> Optional[Member]:
        try:
            return materializer.materialize(ref.url)
        except MalformedMember as e:
            logger.warning(f"[SKIP] {e}")
            return None
