from explorer.models import (
    Variant,
    EventLogDescriptor,
    ViewDescriptor,
    Relation,
    FragmentRef,
    Metadata,
    MemberRef,
    Member,
    Relationship,
    ExplorationSummary,
)
from explorer.errors import (
    ExplorerError,
    NoEventStreamFound,
    UnsupportedVariant,
    MalformedMember,
    ProviderFailure,
)
from explorer.explorer import LDESExplorer
