"""Tests for framer_mcp_server.mcp.lifespan: server startup/shutdown lifecycle.

Tests the server_lifespan() async context manager which:
- Loads config from env vars, YAML fallbacks, and CLI overrides
- Creates FramerClient and validates it by reading project info
- Initializes concurrency semaphore
- Fails fast on config errors or connection failures
"""

from contextlib import ExitStack
from unittest.mock import MagicMock, patch

import pytest

from framer_mcp_server.config import Config
from framer_mcp_server.errors import TransportError
from framer_mcp_server.mcp.lifespan import server_lifespan

_MOD = "framer_mcp_server.mcp.lifespan"


def _make_config(**overrides):
    defaults = {
        "framer_url": "https://framer.com/projects/Site--abc",
        "api_key": "key",
        "max_parallel_requests": 5,
    }
    defaults.update(overrides)
    return Config(**defaults)


def _make_client(config):
    client = MagicMock()
    client.config = config
    client.connect.return_value = "sess-1"
    client.get_project_info.return_value = {"name": "Site"}
    return client


def _patched(stack, config, client, config_files=()):
    """Patch lifespan collaborators; returns the init_semaphore mock."""
    stack.enter_context(patch(f"{_MOD}.load_dotenv"))
    stack.enter_context(
        patch(f"{_MOD}.discover_config_files", return_value=list(config_files))
    )
    stack.enter_context(patch(f"{_MOD}._stderr_print"))
    stack.enter_context(patch(f"{_MOD}.FramerClient", return_value=client))
    load = stack.enter_context(patch(f"{_MOD}.load_config", return_value=config))
    init_sem = stack.enter_context(patch(f"{_MOD}.init_semaphore"))
    return load, init_sem


class TestServerLifespanSuccess:
    async def test_successful_startup(self):
        config = _make_config()
        client = _make_client(config)
        with ExitStack() as stack:
            _, init_sem = _patched(stack, config, client)
            async with server_lifespan() as ctx:
                assert ctx["client"] is client

        init_sem.assert_called_once_with(5)
        client.connect.assert_called_once_with(config.framer_url)
        client.get_project_info.assert_called_once_with("sess-1")
        client.disconnect.assert_called_once_with("sess-1")

    async def test_semaphore_uses_max_parallel_from_config(self):
        config = _make_config(max_parallel_requests=12)
        with ExitStack() as stack:
            _, init_sem = _patched(stack, config, _make_client(config))
            async with server_lifespan():
                pass
        init_sem.assert_called_once_with(12)

    async def test_cli_overrides_passed_to_load_config(self):
        config = _make_config()
        with ExitStack() as stack:
            load, _ = _patched(stack, config, _make_client(config))
            async with server_lifespan(
                config_overrides={
                    "url": "cli-project",
                    "api_key": "cli-key",
                    "endpoint": "https://rpc.example.com",
                    "debug": True,
                }
            ):
                pass
        load.assert_called_once_with(
            url="cli-project",
            api_key="cli-key",
            endpoint="https://rpc.example.com",
            debug=True,
            yaml_fallbacks=None,
        )

    async def test_yaml_fallbacks_from_config_file(self, tmp_path):
        config = _make_config()
        raw = {"framer": {"url": "yaml-project"}, "reconcile": {"max_attempts": 3}}
        with ExitStack() as stack:
            load, _ = _patched(
                stack, config, _make_client(config), [tmp_path / "config.yml"]
            )
            stack.enter_context(
                patch(f"{_MOD}.load_hierarchical_config", return_value=raw)
            )
            async with server_lifespan():
                pass
        fallbacks = load.call_args.kwargs["yaml_fallbacks"]
        assert fallbacks["url"] == "yaml-project"
        assert fallbacks["max_attempts"] == 3


class TestServerLifespanFailures:
    async def test_config_error_raises_runtime_error(self):
        with ExitStack() as stack:
            _patched(stack, None, MagicMock())
            stack.enter_context(
                patch(f"{_MOD}.load_config", side_effect=ValueError("Framer URL not found"))
            )
            with pytest.raises(RuntimeError, match="Configuration error: Framer URL not found"):
                async with server_lifespan():
                    pass

    async def test_connection_error_raises_runtime_error(self):
        config = _make_config()
        client = _make_client(config)
        client.connect.side_effect = TransportError("connect request failed")
        with ExitStack() as stack:
            _patched(stack, config, client)
            with pytest.raises(RuntimeError, match="Framer connection failed"):
                async with server_lifespan():
                    pass

    async def test_project_info_failure_still_disconnects(self):
        config = _make_config()
        client = _make_client(config)
        client.get_project_info.side_effect = TransportError("boom")
        with ExitStack() as stack:
            _patched(stack, config, client)
            with pytest.raises(RuntimeError, match="boom"):
                async with server_lifespan():
                    pass
        client.disconnect.assert_called_once_with("sess-1")
