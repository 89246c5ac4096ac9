"""Tests for environment-driven configuration."""

import dataclasses

import pytest

from memoryrelay_mcp.utils.config import (DEFAULT_API_URL, ClientConfig, ConfigError, load_config,
                                          resolve_agent_id)

VALID_KEY = 'mem_test_1234567890abcdef'

ENV_VARS = [
    'MEMORYRELAY_API_KEY',
    'MEMORYRELAY_API_URL',
    'MEMORYRELAY_AGENT_ID',
    'MEMORYRELAY_AGENT_NAME',
    'MEMORYRELAY_TIMEOUT',
    'MEMORYRELAY_LOG_LEVEL',
    'MEMORYRELAY_RETRY_ATTEMPTS',
    'MEMORYRELAY_RETRY_DELAY',
    'MCP_TRANSPORT',
    'MCP_HOST',
    'MCP_PORT',
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv('HOSTNAME', 'test-host')


@pytest.fixture
def env(monkeypatch):
    monkeypatch.setenv('MEMORYRELAY_API_KEY', VALID_KEY)
    return monkeypatch


class TestLoadConfig:

    def test_defaults(self, env):
        config = load_config()
        assert config.client.api_key == VALID_KEY
        assert config.client.api_url == DEFAULT_API_URL
        assert config.client.timeout == 30000
        assert config.client.retry_attempts == 4
        assert config.client.retry_delay == 1.0
        assert config.log_level == 'info'
        assert config.mcp.transport == 'stdio'
        assert config.mcp.host == '127.0.0.1'
        assert config.mcp.port == 8000

    def test_overrides(self, env):
        env.setenv('MEMORYRELAY_API_URL', 'https://custom.api.example.com/')
        env.setenv('MEMORYRELAY_TIMEOUT', '60000')
        env.setenv('MEMORYRELAY_LOG_LEVEL', 'DEBUG')
        env.setenv('MEMORYRELAY_AGENT_ID', 'test-agent')
        env.setenv('MEMORYRELAY_RETRY_ATTEMPTS', '2')
        env.setenv('MEMORYRELAY_RETRY_DELAY', '0.25')
        env.setenv('MCP_TRANSPORT', 'sse')
        env.setenv('MCP_PORT', '9001')

        config = load_config()
        assert config.client.api_url == 'https://custom.api.example.com'
        assert config.client.timeout == 60000
        assert config.client.timeout_seconds == 60.0
        assert config.client.agent_id == 'test-agent'
        assert config.client.retry_attempts == 2
        assert config.client.retry_delay == 0.25
        assert config.log_level == 'debug'
        assert config.mcp.transport == 'sse'
        assert config.mcp.port == 9001

    def test_missing_api_key(self):
        with pytest.raises(ConfigError, match='MEMORYRELAY_API_KEY is required'):
            load_config()

    def test_key_without_prefix(self, env):
        env.setenv('MEMORYRELAY_API_KEY', 'invalid_key_1234567890')
        with pytest.raises(ConfigError, match='must start with "mem_"'):
            load_config()

    def test_short_key(self, env):
        env.setenv('MEMORYRELAY_API_KEY', 'mem_short')
        with pytest.raises(ConfigError, match='too short'):
            load_config()

    def test_invalid_url(self, env):
        env.setenv('MEMORYRELAY_API_URL', 'not-a-url')
        with pytest.raises(ConfigError, match='valid URL'):
            load_config()

    @pytest.mark.parametrize('timeout', ['-1000', '0', 'soon'])
    def test_invalid_timeout(self, env, timeout):
        env.setenv('MEMORYRELAY_TIMEOUT', timeout)
        with pytest.raises(ConfigError, match='timeout'):
            load_config()

    def test_invalid_log_level(self, env):
        env.setenv('MEMORYRELAY_LOG_LEVEL', 'verbose')
        with pytest.raises(ConfigError, match='logLevel'):
            load_config()

    def test_warn_alias_accepted(self, env):
        env.setenv('MEMORYRELAY_LOG_LEVEL', 'warn')
        assert load_config().log_level == 'warn'

    def test_reports_every_issue_with_help(self, env):
        env.setenv('MEMORYRELAY_API_KEY', 'nope')
        env.setenv('MEMORYRELAY_TIMEOUT', '-5')
        with pytest.raises(ConfigError) as exc_info:
            load_config()
        message = str(exc_info.value)
        assert 'apiKey' in message
        assert 'timeout' in message
        assert 'Please check your environment variables' in message

    def test_error_does_not_echo_key(self, env):
        env.setenv('MEMORYRELAY_API_KEY', 'mem_short')
        with pytest.raises(ConfigError) as exc_info:
            load_config()
        assert 'mem_short' not in str(exc_info.value)


class TestAgentId:

    def test_explicit_id_wins(self, monkeypatch):
        monkeypatch.setenv('MEMORYRELAY_AGENT_NAME', 'named-agent')
        assert resolve_agent_id('explicit') == 'explicit'

    def test_agent_name_fallback(self, monkeypatch):
        monkeypatch.setenv('MEMORYRELAY_AGENT_NAME', 'named-agent')
        assert resolve_agent_id(None) == 'named-agent'

    def test_hostname_fallback_truncated(self, monkeypatch):
        monkeypatch.setenv('HOSTNAME', 'very-long-hostname')
        assert resolve_agent_id() == 'agent-very-lon'

    def test_system_hostname_when_env_missing(self, monkeypatch):
        monkeypatch.delenv('HOSTNAME', raising=False)
        monkeypatch.setattr('memoryrelay_mcp.utils.config.socket.gethostname', lambda: 'buildbox01')
        assert resolve_agent_id() == 'agent-buildbox'

    def test_load_config_uses_fallback(self, env):
        assert load_config().client.agent_id == 'agent-test-hos'


class TestClientConfig:

    def test_frozen(self):
        config = ClientConfig(api_key=VALID_KEY, api_url='https://x.test', agent_id='a', timeout=1000)
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.timeout = 5

    def test_repr_hides_key(self):
        config = ClientConfig(api_key=VALID_KEY, api_url='https://x.test', agent_id='a', timeout=1000)
        assert VALID_KEY not in repr(config)
