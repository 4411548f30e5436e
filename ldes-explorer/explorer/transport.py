"""
HTTP transport for stream discovery and document retrieval.
HEAD requests expose Link headers; GET requests negotiate an RDF serialization.
Failures are raised as ProviderFailure so traversal can stop cleanly.
"""

import time
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from explorer.core import USER_AGENT, REQUEST_TIMEOUT
from explorer.errors import ProviderFailure

logger = logging.getLogger(__name__)

RDF_ACCEPT = (
    "text/turtle, application/ld+json;q=0.9, application/n-triples;q=0.8, "
    "application/rdf+xml;q=0.7, text/n3;q=0.6"
)

# Freshness override for mutable resources
NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


@dataclass(frozen=True)
class FetchedDocument:
    url: str
    content_type: str
    text: str
    fresh: bool = False


class Transport:
    """
    FLOW: Builds request headers (User-Agent, Accept, optional no-cache) ->
    Routes through the optional fetch proxy -> Classifies outcome -> Returns document or raises.
    """

    def __init__(self, timeout=REQUEST_TIMEOUT, user_agent=USER_AGENT, proxy: Optional[str] = None):
        self.timeout = timeout
        self.user_agent = user_agent
        self.proxy = proxy

    @property
    def proxies(self):
        if not self.proxy:
            return None
        return {"http": self.proxy, "https": self.proxy}

    def head(self, url: str) -> requests.Response:
        start_time = time.time()
        try:
            r = requests.head(
                url,
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
                proxies=self.proxies,
                allow_redirects=True,
            )
        except requests.exceptions.Timeout as e:
            raise ProviderFailure(f"HEAD {url} timed out", url) from e
        except requests.exceptions.RequestException as e:
            raise ProviderFailure(f"HEAD {url} failed: {e}", url) from e

        logger.debug(f"[HEAD] {url} -> {r.status_code} in {int((time.time() - start_time) * 1000)}ms")
        if not 200 <= r.status_code < 300:
            raise ProviderFailure(f"HEAD {url} returned HTTP {r.status_code}", url)
        return r

    def get(self, url: str, fresh: bool = False) -> FetchedDocument:
        headers = {"User-Agent": self.user_agent, "Accept": RDF_ACCEPT}
        if fresh:
            headers.update(NO_CACHE_HEADERS)

        start_time = time.time()
        try:
            r = requests.get(
                url,
                timeout=self.timeout,
                headers=headers,
                proxies=self.proxies,
                allow_redirects=True,
            )
        except requests.exceptions.Timeout as e:
            raise ProviderFailure(f"GET {url} timed out", url) from e
        except requests.exceptions.ConnectionError as e:
            raise ProviderFailure(f"GET {url} connection error: {e}", url) from e
        except requests.exceptions.RequestException as e:
            raise ProviderFailure(f"GET {url} failed: {e}", url) from e

        fetch_time_ms = int((time.time() - start_time) * 1000)
        logger.debug(f"[FETCH] {url} -> {r.status_code} ({len(r.content)} bytes, {fetch_time_ms}ms, fresh={fresh})")

        if not 200 <= r.status_code < 300:
            raise ProviderFailure(f"GET {url} returned HTTP {r.status_code}", url)

        ct = r.headers.get("Content-Type", "")
        return FetchedDocument(url=url, content_type=ct, text=r.text, fresh=fresh)
