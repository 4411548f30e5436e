"""
Link header parsing (RFC 8288).
"""

import re
from typing import List, Optional, Tuple
from urllib.parse import urljoin

from requests.utils import parse_header_links


def parse_link_header(value: Optional[str], base_url: Optional[str] = None) -> List[Tuple[str, str]]:
    """
    Return (target_url, relation_type) pairs in header order.
    A rel listing several space-separated types yields one pair per type.
    Relative targets are resolved against base_url.
    """
    if not value or not value.strip():
        return []

    # parse_header_links only splits on ", *<"
    value = re.sub(r"\s*,\s*<", ", <", value.strip())

    pairs = []
    for link in parse_header_links(value):
        # Parameter names are case-insensitive
        link = {key.strip().lower(): val for key, val in link.items()}
        url = link.get("url", "").strip()
        if not url:
            continue
        if base_url:
            url = urljoin(base_url, url)
        for rel in link.get("rel", "").split():
            pairs.append((url, rel))
    return pairs


def find_link(pairs: List[Tuple[str, str]], rel: str) -> Optional[str]:
    for url, candidate in pairs:
        if candidate == rel:
            return url
    return None
