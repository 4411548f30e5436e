from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from explorer.errors import MalformedMember


class Variant(Enum):
    CONTAINER_BASED = "container"
    RELATION_BASED = "relation"
    FLAT = "flat"


class CursorState(Enum):
    PENDING = "PENDING"
    WALKING = "WALKING"
    REPROBING = "REPROBING"
    EXHAUSTED = "EXHAUSTED"


@dataclass(frozen=True)
class LinkResolution:
    root_url: str
    event_log_template_url: Optional[str] = None


@dataclass(frozen=True)
class ViewDescriptor:
    view_url: str
    view_description_url: Optional[str] = None


@dataclass(frozen=True)
class EventLogDescriptor:
    """
    Outcome of classification. Created once per traversal.
    Invariant: views keep discovery order.
    """
    root_url: str
    variant: Variant
    views: Tuple[ViewDescriptor, ...] = ()


@dataclass(frozen=True)
class Relation:
    """
    Directed edge from source_node to target_node.
    comparison_value is the native value of the tree:value literal when present.
    """
    relation_id: str
    relation_kind: str
    target_node: str
    comparison_value: Any = None
    path: Optional[str] = None
    source_node: Optional[str] = None


@dataclass(frozen=True)
class FragmentRef:
    url: str
    relation: Optional[Relation] = None
    is_tail: bool = False


@dataclass(frozen=True)
class Metadata:
    date_time: Optional[Union[datetime, str]] = None


@dataclass(frozen=True)
class MemberRef:
    url: str
    metadata: Optional[Metadata] = None


@dataclass(frozen=True)
class Relationship:
    subject: str
    relationship: str
    object: str


@dataclass(frozen=True)
class Member:
    """
    Materialized log member.
    object_relationship is None when the object is not a relationship
    or when it could not be resolved to exactly one triple.
    """
    id: str
    url: str
    actor_url: str
    object: str
    actor_name: Optional[str] = None
    target_url: Optional[str] = None
    target_name: Optional[str] = None
    context: Optional[str] = None
    types: Tuple[str, ...] = ()
    object_types: Tuple[str, ...] = ()
    object_relationship: Optional[Relationship] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "actorUrl": self.actor_url,
            "actorName": self.actor_name,
            "object": self.object,
            "targetUrl": self.target_url,
            "targetName": self.target_name,
            "context": self.context,
            "types": list(self.types),
            "objectTypes": list(self.object_types),
            "objectRelationship": None if self.object_relationship is None else {
                "subject": self.object_relationship.subject,
                "relationship": self.object_relationship.relationship,
                "object": self.object_relationship.object,
            },
        }


@dataclass
class MemberDraft:
    """
    Builder for a Member. One field group per extraction sub-query:
    content (actor/object/target/context), types, object_types, relationship.
    """
    url: str
    content: Dict[str, Optional[str]] = field(default_factory=dict)
    types: List[str] = field(default_factory=list)
    object_types: List[str] = field(default_factory=list)
    relationship: Optional[Relationship] = None

    MANDATORY = ("actorUrl", "object")

    def missing(self) -> List[str]:
        return [name for name in self.MANDATORY if not self.content.get(name)]

    def build(self) -> Member:
        missing = self.missing()
        if missing:
            raise MalformedMember(self.url, missing)
        return Member(
            id=self.content.get("id") or self.url,
            url=self.url,
            actor_url=self.content["actorUrl"],
            object=self.content["object"],
            actor_name=self.content.get("actorName"),
            target_url=self.content.get("targetUrl"),
            target_name=self.content.get("targetName"),
            context=self.content.get("context"),
            types=tuple(self.types),
            object_types=tuple(self.object_types),
            object_relationship=self.relationship,
        )


@dataclass(frozen=True)
class ExplorationSummary:
    """Stream description returned by LDESExplorer.describe."""
    ldes: str
    variant: Variant
    view: Optional[ViewDescriptor]
    relations: Tuple[Relation, ...]
    event_log_template_url: Optional[str] = None

    @property
    def ldes_in_ldp(self) -> bool:
        return self.variant is Variant.CONTAINER_BASED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ldes": self.ldes,
            "variant": self.variant.value,
            "LDESinLDP": self.ldes_in_ldp,
            "eventLog": self.event_log_template_url,
            "view": None if self.view is None else {
                "view": self.view.view_url,
                "viewDescription": self.view.view_description_url,
            },
            "relations": [
                {
                    "relation": r.relation_id,
                    "relationType": r.relation_kind,
                    "node": r.target_node,
                    "value": None if r.comparison_value is None else str(r.comparison_value),
                    "path": r.path,
                }
                for r in self.relations
            ],
        }
