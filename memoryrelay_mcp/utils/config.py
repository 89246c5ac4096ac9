"""
Configuration management for the MemoryRelay API client and MCP server.
"""

import os
import socket
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

load_dotenv()

DEFAULT_API_URL = 'https://api.memoryrelay.net'
DEFAULT_TIMEOUT_MS = 30000
DEFAULT_RETRY_ATTEMPTS = 4
DEFAULT_RETRY_DELAY = 1.0
API_KEY_PREFIX = 'mem_'
API_KEY_MIN_LENGTH = 20

# 'warn' is accepted as an alias of 'warning'
LOG_LEVELS = ('debug', 'info', 'warn', 'warning', 'error')
MCP_TRANSPORTS = ('stdio', 'sse', 'http')

CONFIG_HELP = ('Please check your environment variables:\n'
               f'  - MEMORYRELAY_API_KEY (required, starts with "{API_KEY_PREFIX}")\n'
               f'  - MEMORYRELAY_API_URL (optional, default: {DEFAULT_API_URL})\n'
               '  - MEMORYRELAY_AGENT_ID (optional, auto-detected)\n'
               f'  - MEMORYRELAY_TIMEOUT (optional, default: {DEFAULT_TIMEOUT_MS})\n'
               '  - MEMORYRELAY_LOG_LEVEL (optional, default: info)')


class ConfigError(Exception):
    """Raised when the environment does not describe a usable configuration."""
    pass


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for the MemoryRelay API client."""
    api_key: str
    api_url: str
    agent_id: str
    timeout: int  # milliseconds
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY  # seconds

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000.0

    def __repr__(self) -> str:
        # Keep the key out of reprs that end up in logs or tracebacks
        return (f'ClientConfig(api_url={self.api_url!r}, agent_id={self.agent_id!r}, '
                f'timeout={self.timeout!r}, retry_attempts={self.retry_attempts!r}, '
                f'retry_delay={self.retry_delay!r})')


@dataclass
class MCPConfig:
    """Configuration for MCP interface."""
    transport: str
    host: str
    port: int


@dataclass
class AppConfig:
    """Main application configuration."""
    log_level: str
    client: ClientConfig
    mcp: MCPConfig


def resolve_agent_id(agent_id: Optional[str] = None) -> str:
    """Get or generate the agent identifier.

    Args:
        agent_id: Explicitly configured agent ID, if any

    Returns:
        The configured ID, the agent name from the environment, or an ID derived from the hostname
    """
    if agent_id:
        return agent_id

    agent_name = os.getenv('MEMORYRELAY_AGENT_NAME')
    if agent_name:
        return agent_name

    hostname = os.getenv('HOSTNAME')
    if not hostname:
        try:
            hostname = socket.gethostname()
        except OSError:
            hostname = ''
    return f'agent-{(hostname or "unknown")[:8]}'


def _parse_int(name: str, raw: Optional[str], default: int, issues: List[str]) -> int:
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError:
        issues.append(f'  - {name}: must be an integer (got {raw!r})')
        return default


def _parse_float(name: str, raw: Optional[str], default: float, issues: List[str]) -> float:
    if raw is None or raw == '':
        return default
    try:
        return float(raw)
    except ValueError:
        issues.append(f'  - {name}: must be a number (got {raw!r})')
        return default


def load_config() -> AppConfig:
    """Load and validate configuration from environment variables with defaults.

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigError: If any setting is missing or invalid; the message lists every problem found
    """
    issues: List[str] = []

    api_key = os.getenv('MEMORYRELAY_API_KEY', '')
    if not api_key:
        issues.append('  - apiKey: MEMORYRELAY_API_KEY is required')
    elif not api_key.startswith(API_KEY_PREFIX):
        issues.append(f'  - apiKey: API key must start with "{API_KEY_PREFIX}"')
    elif len(api_key) < API_KEY_MIN_LENGTH:
        issues.append('  - apiKey: API key appears to be invalid (too short)')

    api_url = os.getenv('MEMORYRELAY_API_URL') or DEFAULT_API_URL
    parsed = urlparse(api_url)
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        issues.append('  - apiUrl: API URL must be a valid URL')

    timeout = _parse_int('timeout', os.getenv('MEMORYRELAY_TIMEOUT'), DEFAULT_TIMEOUT_MS, issues)
    if timeout <= 0:
        issues.append('  - timeout: Timeout must be positive')

    retry_attempts = _parse_int('retryAttempts', os.getenv('MEMORYRELAY_RETRY_ATTEMPTS'), DEFAULT_RETRY_ATTEMPTS,
                                issues)
    if retry_attempts < 1:
        issues.append('  - retryAttempts: must be at least 1')

    retry_delay = _parse_float('retryDelay', os.getenv('MEMORYRELAY_RETRY_DELAY'), DEFAULT_RETRY_DELAY, issues)
    if retry_delay < 0:
        issues.append('  - retryDelay: must not be negative')

    log_level = (os.getenv('MEMORYRELAY_LOG_LEVEL') or 'info').lower()
    if log_level not in LOG_LEVELS:
        issues.append(f'  - logLevel: must be one of {", ".join(LOG_LEVELS)}')

    transport = (os.getenv('MCP_TRANSPORT') or 'stdio').lower()
    if transport not in MCP_TRANSPORTS:
        issues.append(f'  - transport: must be one of {", ".join(MCP_TRANSPORTS)}')
    port = _parse_int('port', os.getenv('MCP_PORT'), 8000, issues)

    if issues:
        raise ConfigError('Configuration validation failed:\n' + '\n'.join(issues) + '\n\n' + CONFIG_HELP)

    client_config = ClientConfig(api_key=api_key,
                                 api_url=api_url.rstrip('/'),
                                 agent_id=resolve_agent_id(os.getenv('MEMORYRELAY_AGENT_ID')),
                                 timeout=timeout,
                                 retry_attempts=retry_attempts,
                                 retry_delay=retry_delay)

    mcp_config = MCPConfig(transport=transport, host=os.getenv('MCP_HOST', '127.0.0.1'), port=port)

    return AppConfig(log_level=log_level, client=client_config, mcp=mcp_config)
