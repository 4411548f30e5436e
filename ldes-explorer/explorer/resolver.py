"""
Locates the event stream behind an artifact by reading the Link header of a HEAD response.
"""

import logging
from typing import Optional

from explorer.core import EVENT_LOG_REL, EVENT_STREAM_REL
from explorer.errors import NoEventStreamFound
from explorer.links import find_link, parse_link_header
from explorer.models import LinkResolution
from explorer.transport import Transport

logger = logging.getLogger(__name__)


class LinkResolver:
    def __init__(self, transport: Optional[Transport] = None,
                 stream_rel: str = EVENT_STREAM_REL, event_log_rel: str = EVENT_LOG_REL):
        self.transport = transport or Transport()
        self.stream_rel = stream_rel
        self.event_log_rel = event_log_rel

    def resolve(self, artifact_url: str) -> LinkResolution:
        """
        HEAD the artifact and pick the link whose rel is the event stream type.
        The returned root is used as-is, no further redirects are chased.
        """
        response = self.transport.head(artifact_url)
        header = response.headers.get("Link")
        if not header:
            raise NoEventStreamFound(artifact_url, "response has no Link header")

        pairs = parse_link_header(header, base_url=getattr(response, "url", None) or artifact_url)
        root_url = find_link(pairs, self.stream_rel)
        if not root_url:
            raise NoEventStreamFound(artifact_url, f"no link with rel={self.stream_rel}")

        template = find_link(pairs, self.event_log_rel)
        logger.info(f"[RESOLVE] Found LDES: {root_url}" + (f" (event log: {template})" if template else ""))
        return LinkResolution(root_url=root_url, event_log_template_url=template)
