"""
Fixed SPARQL templates. Only IRIs are interpolated, through iri(); terms taken
from a member graph (possibly blank nodes) are pre-bound by the caller instead.
"""

import re

from rdflib import Namespace

LDES = Namespace("https://w3id.org/ldes#")
TREE = Namespace("https://w3id.org/tree#")
LDP = Namespace("http://www.w3.org/ns/ldp#")
DCTERMS = Namespace("http://purl.org/dc/terms/")
AS = Namespace("https://www.w3.org/ns/activitystreams#")

RELATIONSHIP_TYPE = str(AS.Relationship)

# Characters not allowed inside an IRIREF
_ILLEGAL_IRI = re.compile(r'[\x00-\x20<>"{}|^`\\]')

PREFIXES = f"""
PREFIX ldes: <{LDES}>
PREFIX tree: <{TREE}>
PREFIX ldp: <{LDP}>
PREFIX dc: <{DCTERMS}>
PREFIX acts: <{AS}>
"""


def iri(url: str) -> str:
    if not url or _ILLEGAL_IRI.search(url):
        raise ValueError(f"Not a usable IRI: {url!r}")
    return f"<{url}>"


def views_query(root_url: str) -> str:
    return PREFIXES + f"""
SELECT ?view ?viewDescription
WHERE {{
  {iri(root_url)} tree:view ?view.
  OPTIONAL {{
    ?view tree:viewDescription ?viewDescription.
  }}
}}"""


def variant_query(root_url: str) -> str:
    """One probe; each UNION branch binds ?kind for the strategy it proves."""
    root = iri(root_url)
    return PREFIXES + f"""
SELECT DISTINCT ?kind
WHERE {{
  {{
    {root} tree:view ?view.
    ?view tree:viewDescription ?description.
    ?description ldes:managedBy ?client.
    ?client a ldes:LDESinLDPClient.
    BIND("container" AS ?kind)
  }} UNION {{
    {root} tree:view ?view.
    {root} tree:member ?member.
    BIND("relation" AS ?kind)
  }} UNION {{
    {root} a ldes:EventStream.
    BIND("flat" AS ?kind)
  }}
}}"""


def relations_query(node_url: str) -> str:
    return PREFIXES + f"""
SELECT ?relation ?relationType ?node ?value ?path
WHERE {{
  {iri(node_url)} tree:relation ?relation.
  ?relation a ?relationType;
            tree:node ?node.
  OPTIONAL {{ ?relation tree:value ?value. }}
  OPTIONAL {{ ?relation tree:path ?path. }}
}}"""


def container_members_query(fragment_url: str) -> str:
    return PREFIXES + f"""
SELECT ?member ?dateTime
WHERE {{
  {iri(fragment_url)} a ldp:BasicContainer;
                      ldp:contains ?member.
  OPTIONAL {{ ?member dc:modified ?dateTime. }}
}}"""


def stream_members_query() -> str:
    return PREFIXES + """
SELECT DISTINCT ?member
WHERE {
  ?stream tree:member ?member.
}"""


def content_query() -> str:
    return PREFIXES + """
SELECT ?id ?actorUrl ?actorName ?object ?targetUrl ?targetName ?context
WHERE {
  {
    SELECT DISTINCT ?id
    WHERE {
      { ?id acts:actor ?anyActor. } UNION { ?id acts:object ?anyObject. }
      FILTER NOT EXISTS { ?parent acts:object ?id. }
    }
  }
  OPTIONAL { ?id acts:actor ?actorUrl. OPTIONAL { ?actorUrl acts:name ?actorName. } }
  OPTIONAL { ?id acts:object ?object. }
  OPTIONAL { ?id acts:target ?targetUrl. OPTIONAL { ?targetUrl acts:name ?targetName. } }
  OPTIONAL { ?id acts:context ?context. }
}"""


def types_query() -> str:
    """Types of ?subject, which the caller binds to a term of the member graph."""
    return PREFIXES + """
SELECT DISTINCT ?type
WHERE {
  ?subject a ?type.
}"""


def relationship_query() -> str:
    """Triple carried by ?node, which the caller binds to the as:Relationship term."""
    return PREFIXES + """
SELECT ?subject ?relationship ?object
WHERE {
  ?node acts:subject ?subject;
        acts:relationship ?relationship;
        acts:object ?object.
}"""
