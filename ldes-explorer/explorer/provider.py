"""
FILE DESCRIPTION: Graph-query provider. Dereferences source documents, loads them into an
in-memory rdflib graph and evaluates SPARQL against it.
KEY FUNCTIONS/CLASSES: QueryOptions, QueryProvider, rdf_format
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, Optional, Tuple

from rdflib import Graph, URIRef
from rdflib.term import Node
from rdflib.util import guess_format

from explorer.core import FOLLOW_MAX_DEPTH, FOLLOW_MAX_DOCUMENTS
from explorer.errors import ProviderFailure
from explorer.policy import LinkPolicy, LinkQueue
from explorer.queries import LDES, LDP, TREE
from explorer.transport import FetchedDocument, Transport

logger = logging.getLogger(__name__)

RDF_FORMATS = {
    "text/turtle": "turtle",
    "application/x-turtle": "turtle",
    "application/ld+json": "json-ld",
    "application/json": "json-ld",
    "application/n-triples": "nt",
    "application/rdf+xml": "xml",
    "text/n3": "n3",
}

# Hypermedia predicates whose objects are dereferenced when following links
FOLLOW_PREDICATES = (
    TREE.view,
    TREE.viewDescription,
    TREE.node,
    TREE.member,
    LDES.managedBy,
    LDP.contains,
)


def rdf_format(content_type: str, url: str) -> str:
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime in RDF_FORMATS:
        return RDF_FORMATS[mime]
    return guess_format(url) or "turtle"


@dataclass(frozen=True)
class QueryOptions:
    """
    lenient: unparseable sources are skipped instead of failing the query.
    follow_links: dereference hypermedia links found in the sources.
    fresh: bypass every cache for the sources of this query.
    fetch: transport override, called as fetch(url, fresh=...).
    follow_predicates: predicates to follow instead of FOLLOW_PREDICATES.
    """
    lenient: bool = True
    follow_links: bool = False
    fresh: bool = False
    fetch: Optional[Callable[..., FetchedDocument]] = None
    follow_predicates: Optional[Tuple[URIRef, ...]] = None


class QueryProvider:
    """
    FLOW: Fetches each source (document cache unless fresh) -> Parses into one graph ->
    Optionally follows hypermedia links breadth-first -> Evaluates the query -> Yields bindings.

    One provider belongs to one traversal; its document cache never outlives it.
    """

    def __init__(self, transport: Optional[Transport] = None,
                 max_depth: int = FOLLOW_MAX_DEPTH, max_documents: int = FOLLOW_MAX_DOCUMENTS):
        self.transport = transport or Transport()
        self.max_depth = max_depth
        self.max_documents = max_documents
        self._documents: Dict[str, FetchedDocument] = {}
        self._graphs: Dict[str, Tuple[FetchedDocument, Graph]] = {}
        self._lock = threading.Lock()

    def query_bindings(self, query: str, sources: Iterable[str], options: Optional[QueryOptions] = None,
                       bindings: Optional[Dict[str, Node]] = None) -> Iterator[Dict[str, object]]:
        """
        bindings pre-binds query variables to terms, blank nodes included. A blank node
        keeps its identity for as long as the document it came from stays cached.
        """
        options = options or QueryOptions()
        graph = self._load(list(sources), options)
        result = self._execute(graph, query, bindings)
        if result.type != "SELECT":
            raise ProviderFailure(f"Expected a SELECT query, got {result.type}")
        for row in result:
            yield dict(row.asdict())

    def query_boolean(self, query: str, sources: Iterable[str],
                      options: Optional[QueryOptions] = None) -> bool:
        options = options or QueryOptions()
        graph = self._load(list(sources), options)
        result = self._execute(graph, query, None)
        if result.type != "ASK":
            raise ProviderFailure(f"Expected an ASK query, got {result.type}")
        return bool(result.askAnswer)

    # === LOADING ===

    def _load(self, sources, options: QueryOptions) -> Graph:
        graph = Graph()
        for url in sources:
            parsed = self._parsed(self._fetch(url, options), options.lenient)
            if parsed is not None:
                graph += parsed

        if options.follow_links:
            self._follow(graph, sources, options)
        return graph

    def _fetch(self, url: str, options: QueryOptions) -> FetchedDocument:
        url = LinkPolicy.document_url(url)
        if not options.fresh:
            with self._lock:
                cached = self._documents.get(url)
            if cached is not None:
                return cached

        fetch = options.fetch or self.transport.get
        document = fetch(url, fresh=options.fresh)
        with self._lock:
            self._documents[url] = document
        return document

    def _parsed(self, document: FetchedDocument, lenient: bool) -> Optional[Graph]:
        """Parsed graph of a document, reused until the document itself is refetched."""
        with self._lock:
            cached = self._graphs.get(document.url)
        if cached is not None and cached[0] is document:
            return cached[1]

        fmt = rdf_format(document.content_type, document.url)
        graph = Graph()
        try:
            graph.parse(data=document.text, format=fmt, publicID=document.url)
        except Exception as e:
            if lenient:
                logger.warning(f"[PROVIDER] skipping unparseable source {document.url} ({fmt}): {e}")
                return None
            raise ProviderFailure(f"Could not parse {document.url} as {fmt}: {e}", document.url) from e

        with self._lock:
            self._graphs[document.url] = (document, graph)
        return graph

    def _follow(self, graph: Graph, sources, options: QueryOptions):
        queue = LinkQueue(self.max_depth)
        for url in sources:
            queue.mark_visited(url)
        predicates = options.follow_predicates or FOLLOW_PREDICATES
        for link in self._links(graph, predicates):
            queue.enqueue(link, 1)

        followed = 0
        while not queue.is_empty() and followed < self.max_documents:
            url, depth = queue.dequeue()
            followed += 1
            try:
                document = self._fetch(url, options)
            except ProviderFailure as e:
                logger.warning(f"[PROVIDER] not following {url}: {e}")
                continue

            discovered = self._parsed(document, lenient=True)
            if discovered is None:
                continue
            graph += discovered
            for link in self._links(discovered, predicates):
                queue.enqueue(link, depth + 1)

        if not queue.is_empty():
            logger.info(f"[PROVIDER] link following stopped at {self.max_documents} documents")
        logger.debug(f"[PROVIDER] followed {followed} document(s), policy stats: {dict(queue.stats)}")

    @staticmethod
    def _links(graph: Graph, predicates):
        for predicate in predicates:
            for obj in graph.objects(None, predicate):
                if isinstance(obj, URIRef):
                    yield str(obj)

    # === EVALUATION ===

    @staticmethod
    def _execute(graph: Graph, query: str, bindings: Optional[Dict[str, Node]]):
        try:
            return graph.query(query, initBindings=bindings)
        except Exception as e:
            raise ProviderFailure(f"Query evaluation failed: {e}") from e
