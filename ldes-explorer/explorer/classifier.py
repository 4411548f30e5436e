"""
Variant classification: decides which fragmentation strategy governs a stream.
"""

import logging
from typing import List, Optional

from explorer.errors import UnsupportedVariant
from explorer.models import EventLogDescriptor, Variant, ViewDescriptor
from explorer.provider import QueryOptions, QueryProvider
from explorer import queries
from explorer.queries import LDES, TREE

logger = logging.getLogger(__name__)

# Highest priority first
VARIANT_PRIORITY = (Variant.CONTAINER_BASED, Variant.RELATION_BASED, Variant.FLAT)

# root -> view -> view description -> managing client
PROBE_PREDICATES = (TREE.view, TREE.viewDescription, LDES.managedBy)


class VariantClassifier:
    """
    FLOW: Single UNION probe against the root (following root -> view -> description) ->
    Picks the highest-priority branch that matched -> Reads the declared views.
    """

    def __init__(self, provider: QueryProvider):
        self.provider = provider

    def classify(self, root_url: str) -> EventLogDescriptor:
        options = QueryOptions(lenient=True, follow_links=True, follow_predicates=PROBE_PREDICATES)
        kinds = {
            str(binding["kind"])
            for binding in self.provider.query_bindings(queries.variant_query(root_url), [root_url], options)
            if "kind" in binding
        }

        variant = self._pick(kinds)
        if variant is None:
            raise UnsupportedVariant(root_url)

        views = self.views(root_url) if variant is not Variant.FLAT else []
        logger.info(f"[CLASSIFY] {root_url} -> {variant.value} ({len(views)} view(s))")
        return EventLogDescriptor(root_url=root_url, variant=variant, views=tuple(views))

    def views(self, root_url: str) -> List[ViewDescriptor]:
        """Views in discovery order, one entry per view IRI."""
        seen = {}
        for binding in self.provider.query_bindings(queries.views_query(root_url), [root_url], QueryOptions()):
            view_url = str(binding["view"])
            description = binding.get("viewDescription")
            if view_url not in seen or seen[view_url] is None:
                seen[view_url] = str(description) if description is not None else None
        return [ViewDescriptor(view_url=url, view_description_url=desc) for url, desc in seen.items()]

    @staticmethod
    def _pick(kinds) -> Optional[Variant]:
        for variant in VARIANT_PRIORITY:
            if variant.value in kinds:
                return variant
        return None
