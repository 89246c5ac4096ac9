"""
Core data models for the MemoryRelay API.

Response bodies are mapped leniently: missing fields become None and fields the
models do not name are kept in ``extra``. ``to_dict()`` renders what the server
sent, leaving out fields it never sent. The server is trusted, so nothing is
validated here.
"""

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

Timestamp = Union[int, float, str]


def _extras(model: type, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(model) if f.name != 'extra'}
    return {key: value for key, value in data.items() if key not in names}


def _render(obj: Any) -> Dict[str, Any]:
    out = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if f.name == 'extra' or value is None:
            continue
        out[f.name] = value.to_dict() if hasattr(value, 'to_dict') else value
    out.update(obj.extra)
    return out


class EntityType(str, Enum):
    """Closed set of entity classifications."""
    PERSON = 'person'
    PLACE = 'place'
    ORGANIZATION = 'organization'
    PROJECT = 'project'
    CONCEPT = 'concept'
    OTHER = 'other'


@dataclass
class Memory:
    """A stored unit of text owned by an agent."""
    id: str
    content: str
    metadata: Optional[Dict[str, str]] = None
    created_at: Optional[Timestamp] = None
    updated_at: Optional[Timestamp] = None
    agent_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Memory':
        return cls(id=data.get('id'),
                   content=data.get('content'),
                   metadata=data.get('metadata'),
                   created_at=data.get('created_at'),
                   updated_at=data.get('updated_at'),
                   agent_id=data.get('agent_id'),
                   extra=_extras(cls, data))

    def to_dict(self) -> Dict[str, Any]:
        return _render(self)


@dataclass
class Entity:
    """A named, typed node that can be linked to memories."""
    id: str
    name: str
    type: Optional[str] = None  # One of EntityType values
    metadata: Optional[Dict[str, str]] = None
    created_at: Optional[Timestamp] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Entity':
        return cls(id=data.get('id'),
                   name=data.get('name'),
                   type=data.get('type'),
                   metadata=data.get('metadata'),
                   created_at=data.get('created_at'),
                   extra=_extras(cls, data))

    def to_dict(self) -> Dict[str, Any]:
        return _render(self)


@dataclass
class SearchResult:
    """A memory matched by semantic search together with its similarity score (0-1)."""
    memory: Memory
    score: float
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SearchResult':
        return cls(memory=Memory.from_dict(data.get('memory') or {}),
                   score=float(data.get('score') or 0.0),
                   extra=_extras(cls, data))

    def to_dict(self) -> Dict[str, Any]:
        return _render(self)


@dataclass
class ListResponse:
    """One page of a paginated listing. Order is whatever the server returned."""
    data: List[Any] = field(default_factory=list)
    has_more: bool = False
    total_count: Optional[int] = None
    next_cursor: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], item_factory: Callable[[Dict[str, Any]], Any]) -> 'ListResponse':
        return cls(data=[item_factory(item) for item in data.get('data') or []],
                   has_more=bool(data.get('has_more', False)),
                   total_count=data.get('total_count'),
                   next_cursor=data.get('next_cursor'),
                   extra=_extras(cls, data))

    def to_dict(self) -> Dict[str, Any]:
        out = _render(self)
        out['data'] = [item.to_dict() if hasattr(item, 'to_dict') else item for item in self.data]
        return out


@dataclass
class HealthStatus:
    """Outcome of a connectivity check."""
    status: str  # 'healthy' or 'unhealthy'
    message: str

    @property
    def healthy(self) -> bool:
        return self.status == 'healthy'

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
