"""
FILE DESCRIPTION: Content extraction for a single member document.
KEY FUNCTIONS/CLASSES: ContentMaterializer, term_text

Every sub-query is scoped to the member's own document: lenient, no link following.
Terms found by the content query are passed on to the follow-up queries as bindings,
so blank-node activities and objects resolve against the same parsed graph.
"""

import logging
from typing import Dict, List, Optional

from rdflib import BNode, Literal, URIRef
from rdflib.term import Node

from explorer.errors import MalformedMember
from explorer.models import Member, MemberDraft, Relationship
from explorer.provider import QueryOptions, QueryProvider
from explorer import queries

logger = logging.getLogger(__name__)

CONTENT_FIELDS = ("id", "actorUrl", "actorName", "object", "targetUrl", "targetName", "context")

MEMBER_QUERY_OPTIONS = QueryOptions(lenient=True, follow_links=False)


def term_text(term: Node) -> str:
    """Blank nodes keep their N-Triples form (_:label) so they are never mistaken for IRIs."""
    if isinstance(term, BNode):
        return term.n3()
    return str(term)


class ContentMaterializer:
    """
    FLOW: Content quad -> types of the activity -> types of the object ->
    relationship triple when the object is an as:Relationship -> Member.
    """

    def __init__(self, provider: QueryProvider):
        self.provider = provider

    def materialize(self, member_url: str) -> Member:
        draft = MemberDraft(url=member_url)

        row = self.content(member_url)
        draft.content = {name: term_text(term) for name, term in row.items()}
        if isinstance(row.get("id"), BNode):
            # Anonymous activity: the member URL identifies it
            del draft.content["id"]
        missing = draft.missing()
        if missing:
            # Mandatory pair absent, no point in enriching
            raise MalformedMember(member_url, missing)

        draft.types = self.types(member_url, row.get("id", URIRef(member_url)))

        obj = row["object"]
        if isinstance(obj, Literal):
            logger.warning(f"Object of {member_url} is a literal, its types and relationship are not read.")
            return draft.build()

        draft.object_types = self.types(member_url, obj)
        if queries.RELATIONSHIP_TYPE in draft.object_types:
            draft.relationship = self.relationship(member_url, obj)

        return draft.build()

    def content(self, member_url: str) -> Dict[str, Node]:
        rows = [
            {name: binding[name] for name in CONTENT_FIELDS if binding.get(name) is not None}
            for binding in self._select(queries.content_query(), member_url)
        ]
        if not rows:
            return {}
        if len(rows) > 1:
            logger.warning(f"Found {len(rows)} results for content of {member_url}, expected 1.")
            # Most complete row first, then lexical order
            rows.sort(key=lambda row: (
                -len(row),
                tuple(term_text(row[name]) if name in row else "" for name in CONTENT_FIELDS),
            ))
        return rows[0]

    def types(self, member_url: str, subject: Node) -> List[str]:
        bindings = self._select(queries.types_query(), member_url, {"subject": subject})
        return [str(binding["type"]) for binding in bindings if binding.get("type") is not None]

    def relationship(self, member_url: str, node: Node) -> Optional[Relationship]:
        bindings = list(self._select(queries.relationship_query(), member_url, {"node": node}))
        if len(bindings) != 1:
            logger.warning(f"Found {len(bindings)} results for relationship of {term_text(node)}, expected 1.")
            return None
        binding = bindings[0]
        return Relationship(
            subject=term_text(binding["subject"]),
            relationship=term_text(binding["relationship"]),
            object=term_text(binding["object"]),
        )

    def _select(self, query: str, member_url: str, bindings=None):
        return self.provider.query_bindings(query, [member_url], MEMBER_QUERY_OPTIONS, bindings=bindings)
