"""
Tool dispatch: maps MCP tool calls onto MemoryRelay operations.

Arguments are validated here, results rendered as JSON text, and every failure
is turned into an error payload instead of propagating.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as ArgumentError

from ..models.core import EntityType
from ..utils.json_utils import to_json_text
from ..utils.logging_config import get_logger
from ..utils.redaction import redact
from ..utils.validation import sanitize_html
from .memory_relay import DEFAULT_RELATIONSHIP, MemoryRelayService

logger = get_logger(__name__)

TOOL_FAILED = 'Tool execution failed'


class _ToolArgs(BaseModel):
    model_config = ConfigDict(extra='ignore')


class MemoryStoreArgs(_ToolArgs):
    content: str
    metadata: Optional[Dict[str, str]] = None


class MemorySearchArgs(_ToolArgs):
    query: str
    limit: int = Field(10, ge=1, le=50)
    threshold: float = Field(0.5, ge=0, le=1)


class MemoryListArgs(_ToolArgs):
    limit: int = Field(20, ge=1, le=100)
    offset: int = Field(0, ge=0)


class MemoryIdArgs(_ToolArgs):
    id: str


class MemoryUpdateArgs(_ToolArgs):
    id: str
    content: str
    metadata: Optional[Dict[str, str]] = None


class EntityCreateArgs(_ToolArgs):
    name: str = Field(min_length=1, max_length=200)
    type: EntityType
    metadata: Optional[Dict[str, str]] = None


class EntityLinkArgs(_ToolArgs):
    entity_id: str
    memory_id: str
    relationship: str = DEFAULT_RELATIONSHIP


@dataclass
class ToolResult:
    """Text payload of a tool call and whether it represents a failure."""
    text: str
    is_error: bool = False

    def to_mcp(self) -> Dict[str, Any]:
        return {'content': [{'type': 'text', 'text': self.text}], 'isError': self.is_error}


class ToolDispatcher:
    """Routes a tool name and argument bag to the matching MemoryRelayService call."""

    def __init__(self, service: MemoryRelayService, log: Optional[logging.Logger] = None):
        self.service = service
        self.logger = log or logger
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[Any]]] = {
            'memory_store': self._memory_store,
            'memory_search': self._memory_search,
            'memory_list': self._memory_list,
            'memory_get': self._memory_get,
            'memory_update': self._memory_update,
            'memory_delete': self._memory_delete,
            'entity_create': self._entity_create,
            'entity_link': self._entity_link,
            'memory_health': self._memory_health,
        }

    @property
    def tool_names(self) -> List[str]:
        return list(self._handlers)

    async def dispatch(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        """
        Execute a tool call. Never raises.

        Args:
            name: Tool name from the catalog
            arguments: Tool arguments as received from the MCP client

        Returns:
            ToolResult with the JSON-rendered result, or an error payload
            ``{error, message, details?}`` flagged with is_error
        """
        arguments = arguments or {}
        self.logger.debug(f'Tool called: {name} (arguments: {sorted(arguments)})')

        try:
            handler = self._handlers.get(name)
            if handler is None:
                raise LookupError(f'Unknown tool: {name}')
            return ToolResult(text=to_json_text(await handler(arguments)))

        except ArgumentError as e:
            return self.validation_error(name, e)
        except Exception as e:
            return self.error_result(name, str(e) or type(e).__name__)

    def validation_error(self, name: str, error: ArgumentError) -> ToolResult:
        """Envelope for arguments rejected by a pydantic model, listing each violation."""
        details = [{'loc': list(err['loc']), 'msg': err['msg'], 'type': err['type']} for err in error.errors()]
        return self.error_result(name, 'Validation error', details)

    def error_result(self, name: str, message: str, details: Optional[List[Dict[str, Any]]] = None) -> ToolResult:
        message = redact(message, self.service.config.api_key)
        self.logger.error(f'Tool execution failed: {name}: {message}')

        payload: Dict[str, Any] = {'error': TOOL_FAILED, 'message': message}
        if details is not None:
            payload['details'] = details
        return ToolResult(text=to_json_text(payload), is_error=True)

    async def _memory_store(self, arguments: Dict[str, Any]) -> Any:
        args = MemoryStoreArgs.model_validate(arguments)
        return await self.service.store_memory(args.content, args.metadata)

    async def _memory_search(self, arguments: Dict[str, Any]) -> Any:
        args = MemorySearchArgs.model_validate(arguments)
        results = await self.service.search_memories(args.query, args.limit, args.threshold)
        return {'memories': results, 'total': len(results)}

    async def _memory_list(self, arguments: Dict[str, Any]) -> Any:
        args = MemoryListArgs.model_validate(arguments)
        return await self.service.list_memories(args.limit, args.offset)

    async def _memory_get(self, arguments: Dict[str, Any]) -> Any:
        args = MemoryIdArgs.model_validate(arguments)
        return await self.service.get_memory(args.id)

    async def _memory_update(self, arguments: Dict[str, Any]) -> Any:
        args = MemoryUpdateArgs.model_validate(arguments)
        return await self.service.update_memory(args.id, args.content, args.metadata)

    async def _memory_delete(self, arguments: Dict[str, Any]) -> Any:
        args = MemoryIdArgs.model_validate(arguments)
        await self.service.delete_memory(args.id)
        return {'success': True, 'message': 'Memory deleted successfully'}

    async def _entity_create(self, arguments: Dict[str, Any]) -> Any:
        args = EntityCreateArgs.model_validate(arguments)
        return await self.service.create_entity(sanitize_html(args.name), args.type, args.metadata)

    async def _entity_link(self, arguments: Dict[str, Any]) -> Any:
        args = EntityLinkArgs.model_validate(arguments)
        await self.service.link_entity(args.entity_id, args.memory_id, args.relationship)
        return {
            'success': True,
            'message': 'Entity linked to memory successfully',
            'entity_id': args.entity_id,
            'memory_id': args.memory_id,
            'relationship': args.relationship,
        }

    async def _memory_health(self, arguments: Dict[str, Any]) -> Any:
        return await self.service.health_check()
