"""
MCP Interface Layer using fastmcp to expose MemoryRelay as agent tools.
"""
import sys
from typing import Annotated, Any, Dict, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.server.middleware import Middleware, MiddlewareContext
from pydantic import Field, ValidationError

from . import __version__
from .models.core import EntityType
from .services.memory_relay import DEFAULT_RELATIONSHIP, MemoryRelayService
from .services.tool_dispatch import ToolDispatcher
from .utils.config import AppConfig, ConfigError, load_config
from .utils.logging_config import get_logger, setup_logging
from .utils.redaction import redact, scrub

logger = get_logger(__name__)

SERVER_NAME = 'MemoryRelay'


class ArgumentErrorMiddleware(Middleware):
    """Reports tool arguments rejected by FastMCP's schema validation in the dispatcher's error envelope."""

    def __init__(self, dispatcher: ToolDispatcher):
        self.dispatcher = dispatcher

    async def on_call_tool(self, context: MiddlewareContext, call_next):
        try:
            return await call_next(context)
        except ValidationError as e:
            raise ToolError(self.dispatcher.validation_error(context.message.name, e).text) from None


def create_mcp_server(dispatcher: ToolDispatcher) -> FastMCP:
    """Build the FastMCP application with one tool per catalog entry.

    Args:
        dispatcher: ToolDispatcher that executes the calls

    Returns:
        FastMCP instance ready to run
    """
    mcp = FastMCP(SERVER_NAME)
    mcp.add_middleware(ArgumentErrorMiddleware(dispatcher))

    async def call(name: str, arguments: Dict[str, Any]) -> str:
        result = await dispatcher.dispatch(name, arguments)
        if result.is_error:
            raise ToolError(result.text)
        return result.text

    @mcp.tool()
    async def memory_store(content: Annotated[str, Field(description='The memory content to store. Be specific and '
                                                                     'include relevant context.')],
                           metadata: Annotated[Optional[Dict[str, str]],
                                               Field(description='Optional key-value metadata to attach to the memory'
                                                     )] = None) -> str:
        """Store a new memory. Use this to save important information, facts, preferences, or context that should be
        remembered for future conversations."""
        return await call('memory_store', {'content': content, 'metadata': metadata})

    @mcp.tool()
    async def memory_search(query: Annotated[str, Field(description='Natural language search query')],
                            limit: Annotated[int, Field(ge=1, le=50, description='Maximum number of results to return '
                                                        '(1-50)')] = 10,
                            threshold: Annotated[float, Field(ge=0, le=1, description='Minimum similarity threshold '
                                                              '(0-1)')] = 0.5) -> str:
        """Search memories using natural language. Returns the most relevant memories based on semantic similarity to
        the query."""
        return await call('memory_search', {'query': query, 'limit': limit, 'threshold': threshold})

    @mcp.tool()
    async def memory_list(limit: Annotated[int, Field(ge=1, le=100, description='Number of memories to return '
                                                      '(1-100)')] = 20,
                          offset: Annotated[int, Field(ge=0, description='Offset for pagination')] = 0) -> str:
        """List recent memories chronologically. Use to review what has been remembered."""
        return await call('memory_list', {'limit': limit, 'offset': offset})

    @mcp.tool()
    async def memory_get(id: Annotated[str, Field(description='The memory ID (UUID) to retrieve')]) -> str:
        """Retrieve a specific memory by its ID."""
        return await call('memory_get', {'id': id})

    @mcp.tool()
    async def memory_update(id: Annotated[str, Field(description='The memory ID (UUID) to update')],
                            content: Annotated[str, Field(description='The new content to replace the existing memory'
                                                          )],
                            metadata: Annotated[Optional[Dict[str, str]],
                                                Field(description='Updated metadata (replaces existing)')] = None) -> str:
        """Update the content of an existing memory. Use to correct or expand stored information."""
        return await call('memory_update', {'id': id, 'content': content, 'metadata': metadata})

    @mcp.tool()
    async def memory_delete(id: Annotated[str, Field(description='The memory ID (UUID) to delete')]) -> str:
        """Permanently delete a memory. Use sparingly - memories are valuable context."""
        return await call('memory_delete', {'id': id})

    @mcp.tool()
    async def entity_create(name: Annotated[str, Field(min_length=1, max_length=200,
                                                       description='Entity name (1-200 characters)')],
                            type: Annotated[EntityType, Field(description='Entity type classification')],
                            metadata: Annotated[Optional[Dict[str, str]],
                                                Field(description='Optional key-value metadata')] = None) -> str:
        """Create a named entity (person, place, organization, project, concept) for the knowledge graph. Entities
        help organize and connect memories."""
        return await call('entity_create', {'name': name, 'type': type, 'metadata': metadata})

    @mcp.tool()
    async def entity_link(entity_id: Annotated[str, Field(description='Entity UUID')],
                          memory_id: Annotated[str, Field(description='Memory UUID')],
                          relationship: Annotated[str, Field(description='Relationship type (e.g., "mentioned_in", '
                                                             '"created_by", "relates_to")')] = DEFAULT_RELATIONSHIP
                          ) -> str:
        """Link an entity to a memory to establish relationships in the knowledge graph."""
        return await call('entity_link', {'entity_id': entity_id, 'memory_id': memory_id, 'relationship': relationship})

    @mcp.tool()
    async def memory_health() -> str:
        """Check API connectivity and health status."""
        return await call('memory_health', {})

    return mcp


def build_server(config: AppConfig) -> FastMCP:
    """Wire service, dispatcher and MCP application from a loaded configuration."""
    service = MemoryRelayService(config.client, log=get_logger('memoryrelay_mcp.services'))
    return create_mcp_server(ToolDispatcher(service))


def run(config: AppConfig, mcp: FastMCP) -> None:
    transport = config.mcp.transport
    if transport == 'stdio':
        mcp.run(transport='stdio')
    else:
        mcp.run(transport=transport, host=config.mcp.host, port=config.mcp.port)


def main() -> None:
    """Console entry point: load configuration, set up logging and serve MCP until interrupted."""
    try:
        config = load_config()
    except ConfigError as e:
        print('\nFailed to start MemoryRelay MCP server\n', file=sys.stderr)
        print(scrub(str(e)), file=sys.stderr)
        sys.exit(1)

    log = setup_logging(config)
    log.info(f'Starting MemoryRelay MCP server v{__version__} (transport={config.mcp.transport})')

    try:
        run(config, build_server(config))
    except KeyboardInterrupt:
        log.info('Received interrupt, shutting down gracefully')
    except Exception as e:
        message = scrub(redact(str(e), config.client.api_key))
        log.error(f'Fatal error: {message}')
        print('\nFailed to start MemoryRelay MCP server\n', file=sys.stderr)
        print(message, file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
