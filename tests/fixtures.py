"""
Shared fakes for explorer tests.
FakeProvider answers queries by matching the SELECT line of each template.
"""

from unittest.mock import MagicMock

from rdflib import Literal, URIRef
from rdflib.namespace import XSD

VARIANT = "SELECT DISTINCT ?kind"
VIEWS = "SELECT ?view ?viewDescription"
RELATIONS = "SELECT ?relation ?relationType"
CONTAINER = "SELECT ?member ?dateTime"
STREAM = "SELECT DISTINCT ?member"
CONTENT = "SELECT ?id ?actorUrl"
TYPES = "SELECT DISTINCT ?type"
RELATIONSHIP = "SELECT ?subject ?relationship ?object"

AS = "https://www.w3.org/ns/activitystreams#"
TREE = "https://w3id.org/tree#"
GTE = TREE + "GreaterThanOrEqualToRelation"


class FakeProvider:
    """Records every call as (query, sources, options); pre-bound terms go to self.bound."""

    def __init__(self):
        self.calls = []
        self.bound = []
        self.routes = []

    def on(self, marker, source, rows, subject=None):
        self.routes.append((marker, source, subject, rows))
        return self

    def query_bindings(self, query, sources, options=None, bindings=None):
        sources = list(sources)
        bindings = bindings or {}
        self.calls.append((query, sources, options))
        self.bound.append(bindings)
        for marker, source, subject, rows in self.routes:
            if marker not in query:
                continue
            if source is not None and source not in sources:
                continue
            if subject is not None and str(bindings.get("subject")) != subject:
                continue
            if callable(rows):
                rows = rows(query, sources, options)
            return iter([dict(row) for row in rows])
        return iter([])

    def calls_for(self, marker, source=None):
        return [c for c in self.calls if marker in c[0] and (source is None or source in c[1])]


def head_response(link_header, url="https://pod.example/artifact"):
    response = MagicMock()
    response.headers = {"Link": link_header} if link_header is not None else {}
    response.url = url
    return response


def stream_transport(artifact_url, root_url):
    transport = MagicMock()
    transport.head.return_value = head_response(
        f'<{root_url}>; rel="https://w3id.org/ldes#EventStream"', url=artifact_url
    )
    return transport


def relation_row(relation_id, target, value=None, kind=GTE, path=AS + "published"):
    row = {
        "relation": URIRef(relation_id),
        "relationType": URIRef(kind),
        "node": URIRef(target),
        "path": URIRef(path),
    }
    if value is not None:
        row["value"] = Literal(value, datatype=XSD.dateTime)
    return row


def add_member(provider, url, actor="https://pod.example/alice", obj=None, target=None,
               types=(AS + "Create",), object_types=(AS + "Note",), relationship_rows=None,
               content_rows=None):
    """Register the documents a materializer reads for one member."""
    activity = url + "#activity"
    obj = obj or url + "#object"
    if content_rows is None:
        row = {"id": URIRef(activity), "actorUrl": URIRef(actor), "actorName": Literal("Alice"),
               "object": URIRef(obj)}
        if target:
            row["targetUrl"] = URIRef(target)
            row["targetName"] = Literal("Target")
        content_rows = [row]
    provider.on(CONTENT, url, content_rows)
    provider.on(TYPES, url, [{"type": URIRef(t)} for t in types], subject=activity)
    provider.on(TYPES, url, [{"type": URIRef(t)} for t in object_types], subject=obj)
    if relationship_rows is not None:
        provider.on(RELATIONSHIP, url, relationship_rows)
    return activity


def container_stream(provider, root, view, fragments):
    """
    fragments: list of (fragment_url, timestamp, [member urls]) in any order.
    Registers an LDES in LDP stream whose view lists one relation per fragment.
    """
    provider.on(VARIANT, root, [{"kind": Literal("container")}, {"kind": Literal("flat")}])
    provider.on(VIEWS, root, [{"view": URIRef(view), "viewDescription": URIRef(view + "#description")}])
    provider.on(RELATIONS, view, [
        relation_row(f"{view}#rel{i}", url, value) for i, (url, value, _) in enumerate(fragments)
    ])
    for url, value, members in fragments:
        provider.on(CONTAINER, url, [{"member": URIRef(m)} for m in members])
        for m in members:
            add_member(provider, m)
