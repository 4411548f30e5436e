"""
Error taxonomy for stream discovery and traversal.

Discovery and classification errors are fatal to a traversal.
MalformedMember is recovered per member by the traversal facade.
"""


class ExplorerError(Exception):
    """Base class for every error raised by the explorer."""


class NoEventStreamFound(ExplorerError):
    def __init__(self, artifact_url, reason="no event stream link"):
        super().__init__(f"No LDES found for {artifact_url}: {reason}")
        self.artifact_url = artifact_url
        self.reason = reason


class UnsupportedVariant(ExplorerError):
    def __init__(self, root_url):
        super().__init__(f"{root_url} matches none of the supported fragmentation strategies")
        self.root_url = root_url


class MalformedMember(ExplorerError):
    def __init__(self, member_url, missing):
        self.member_url = member_url
        self.missing = tuple(missing)
        super().__init__(f"Member {member_url} is missing mandatory field(s): {', '.join(self.missing)}")


class ProviderFailure(ExplorerError):
    """The query provider or its transport failed (network, HTTP status, syntax)."""

    def __init__(self, message, source_url=None):
        super().__init__(message)
        self.source_url = source_url
