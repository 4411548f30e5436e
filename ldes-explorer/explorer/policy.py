"""
Centralized policy for link following during traversal queries.

LinkPolicy decides which discovered IRIs may be dereferenced. It holds no state.
LinkQueue keeps breadth-first order, deduplication, the depth limit and the
decision counters of one query.
"""

from collections import Counter, deque
from urllib.parse import urldefrag, urlparse


class LinkPolicy:
    """
    Central policy for link filtering.

    Methods:
    - is_http(url): True for http/https
    - is_asset(url): True for media/document/script extensions that never carry RDF
    - eval(url): (allowed, reason), the single gate used before dereferencing
    """

    ASSET_EXTENSIONS = {
        ".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp", ".ico",
        ".mp4", ".mp3", ".avi", ".mov", ".webm",
        ".zip", ".rar", ".tar", ".gz", ".7z",
        ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
        ".css", ".js", ".woff", ".woff2", ".ttf",
    }

    @staticmethod
    def is_http(url: str) -> bool:
        try:
            return urlparse(url).scheme in ("http", "https")
        except ValueError:
            return False

    @classmethod
    def is_asset(cls, url: str) -> bool:
        path = urlparse(url).path.lower()
        return any(path.endswith(ext) for ext in cls.ASSET_EXTENSIONS)

    @staticmethod
    def document_url(url: str) -> str:
        """The dereferenceable document of an IRI (fragment stripped)."""
        return urldefrag(url)[0]

    @classmethod
    def eval(cls, url: str):
        """Evaluate a URL and return (allowed: bool, reason: str)."""
        if not cls.is_http(url):
            return False, "blocked_non_http"
        if cls.is_asset(url):
            return False, "blocked_asset"
        return True, "allowed"


class LinkQueue:
    # Responsibilities:
    # - maintain follow order (BFS)
    # - prevent dereferencing a document twice within one query
    # - enforce maximum follow depth
    # - count policy decisions for this query only
    def __init__(self, max_depth):
        self.queue = deque()
        self.visited = set()
        self.queued = set()
        self.max_depth = max_depth
        self.stats = Counter()

    def mark_visited(self, url):
        self.visited.add(LinkPolicy.document_url(url))

    def enqueue(self, url, depth):
        if depth > self.max_depth:
            return False

        url = LinkPolicy.document_url(url)
        if url in self.visited or url in self.queued:
            return False

        allowed, reason = LinkPolicy.eval(url)
        self.stats["evaluations"] += 1
        self.stats[reason] += 1
        if not allowed:
            return False

        self.queue.append((url, depth))
        self.queued.add(url)
        return True

    def dequeue(self):
        if not self.queue:
            return None

        url, depth = self.queue.popleft()
        self.queued.discard(url)
        self.visited.add(url)
        return url, depth

    def is_empty(self):
        return not self.queue
