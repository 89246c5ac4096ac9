"""
Memory and entity operations on top of the MemoryRelay API.
"""

import logging
from typing import Dict, List, Optional
from urllib.parse import urlencode

import httpx

from ..models.core import Entity, EntityType, HealthStatus, ListResponse, Memory, SearchResult
from ..utils.api_client import MemoryRelayAPIClient
from ..utils.config import ClientConfig
from ..utils.logging_config import get_logger
from ..utils.redaction import redact
from ..utils.validation import validate_content_size, validate_uuid

logger = get_logger(__name__)

DEFAULT_RELATIONSHIP = 'mentioned_in'


class MemoryRelayService:
    """Typed memory, entity and health operations. Each call is a fresh round trip; nothing is cached."""

    def __init__(self,
                 config: ClientConfig,
                 log: Optional[logging.Logger] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the service.

        Args:
            config: ClientConfig instance with connection parameters
            log: Logger shared with the underlying API client
            transport: Optional httpx transport (tests)
        """
        self.config = config
        self.logger = log or logger
        self.api = MemoryRelayAPIClient(config, log=self.logger, transport=transport)

    async def __aenter__(self) -> 'MemoryRelayService':
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.api.aclose()

    # Memories

    async def store_memory(self, content: str, metadata: Optional[Dict[str, str]] = None) -> Memory:
        """Store a new memory on behalf of the configured agent.

        Raises:
            ValidationError: If content exceeds the size limit
        """
        validate_content_size(content)
        data = await self.api.request_with_retry('POST', '/v1/memories', {
            'content': content,
            'metadata': metadata,
            'agent_id': self.config.agent_id,
        })
        return Memory.from_dict(data or {})

    async def search_memories(self, query: str, limit: int = 10, threshold: float = 0.5) -> List[SearchResult]:
        """Semantic search over the agent's memories.

        Args:
            query: Natural language query
            limit: Maximum number of results
            threshold: Minimum similarity score (0-1)

        Returns:
            Results in the order the server ranked them
        """
        validate_content_size(query, 'Query')
        data = await self.api.request_with_retry('POST', '/v1/memories/search', {
            'query': query,
            'limit': limit,
            'threshold': threshold,
            'agent_id': self.config.agent_id,
        })
        return [SearchResult.from_dict(item) for item in (data or {}).get('data') or []]

    async def list_memories(self, limit: int = 20, offset: int = 0) -> ListResponse:
        """List memories, most recent first. limit/offset are passed through unchecked."""
        query = urlencode({'limit': limit, 'offset': offset})
        data = await self.api.request_with_retry('GET', f'/v1/memories?{query}')
        return ListResponse.from_dict(data or {}, Memory.from_dict)

    async def get_memory(self, memory_id: str) -> Memory:
        validate_uuid(memory_id, 'memory_id')
        data = await self.api.request_with_retry('GET', f'/v1/memories/{memory_id}')
        return Memory.from_dict(data or {})

    async def update_memory(self,
                            memory_id: str,
                            content: str,
                            metadata: Optional[Dict[str, str]] = None) -> Memory:
        """Replace a memory's content and metadata wholesale."""
        validate_uuid(memory_id, 'memory_id')
        validate_content_size(content)
        data = await self.api.request_with_retry('PATCH', f'/v1/memories/{memory_id}', {
            'content': content,
            'metadata': metadata,
        })
        return Memory.from_dict(data or {})

    async def delete_memory(self, memory_id: str) -> None:
        validate_uuid(memory_id, 'memory_id')
        await self.api.request_with_retry('DELETE', f'/v1/memories/{memory_id}')

    # Entities

    async def create_entity(self,
                            name: str,
                            entity_type: EntityType,
                            metadata: Optional[Dict[str, str]] = None) -> Entity:
        """Create a named entity. The name should already be HTML-escaped by the caller."""
        validate_content_size(name, 'Entity name')
        data = await self.api.request_with_retry('POST', '/v1/entities', {
            'name': name,
            'type': EntityType(entity_type).value,
            'metadata': metadata,
        })
        return Entity.from_dict(data or {})

    async def link_entity(self, entity_id: str, memory_id: str, relationship: str = DEFAULT_RELATIONSHIP) -> None:
        validate_uuid(entity_id, 'entity_id')
        validate_uuid(memory_id, 'memory_id')
        await self.api.request_with_retry('POST', '/v1/entities/links', {
            'entity_id': entity_id,
            'memory_id': memory_id,
            'relationship': relationship,
        })

    async def get_entity(self, entity_id: str) -> Entity:
        validate_uuid(entity_id, 'entity_id')
        data = await self.api.request_with_retry('GET', f'/v1/entities/{entity_id}')
        return Entity.from_dict(data or {})

    async def list_entities(self, limit: int = 20, offset: int = 0) -> ListResponse:
        query = urlencode({'limit': limit, 'offset': offset})
        data = await self.api.request_with_retry('GET', f'/v1/entities?{query}')
        return ListResponse.from_dict(data or {}, Entity.from_dict)

    async def delete_entity(self, entity_id: str) -> None:
        validate_uuid(entity_id, 'entity_id')
        await self.api.request_with_retry('DELETE', f'/v1/entities/{entity_id}')

    # Health

    async def health_check(self) -> HealthStatus:
        """
        Check API connectivity. Never raises.

        Returns:
            HealthStatus; 'unhealthy' with the (redacted) failure when the API cannot be reached
        """
        try:
            await self.api.request_with_retry('GET', '/health')
            return HealthStatus(status='healthy', message='API connection successful')
        except Exception as e:
            self.logger.error(f'MemoryRelay health check failed: {e}')
            return HealthStatus(status='unhealthy', message=f'API connection failed: {redact(str(e), self.config.api_key)}')
