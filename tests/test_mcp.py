import asyncio

import pytest
import yaml

from bfuzz.mcp.auth import AuthManager
from bfuzz.mcp.config import MCPConfig
from bfuzz.mcp.server import FuzzMCPServer

from tests import servers


@pytest.fixture(autouse=True)
def isolated_cwd(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def auth(tmp_path):
    return AuthManager(str(tmp_path / "auth.yaml"))


@pytest.fixture
def server(tmp_path):
    return FuzzMCPServer(MCPConfig(auth_config_path=str(tmp_path / "auth.yaml"), max_batch_size=4))


def test_default_whitelist(auth):
    assert auth.is_authorized("127.0.0.1")
    assert auth.is_authorized("localhost")
    assert auth.is_authorized("printer.local")
    assert not auth.is_authorized("example.com")
    assert not auth.is_authorized("8.8.8.8")


def test_blacklist_wins(tmp_path):
    path = tmp_path / "auth.yaml"
    path.write_text(yaml.safe_dump({"authorization": {
        "mode": "whitelist",
        "whitelist": {"domains": ["*"], "ip_ranges": []},
        "blacklist": ["*.gov"],
    }}))
    manager = AuthManager(str(path))
    assert manager.is_authorized("test.example.com")
    assert not manager.is_authorized("agency.gov")


def test_open_mode_allows_anything_not_blacklisted(tmp_path):
    path = tmp_path / "auth.yaml"
    path.write_text(yaml.safe_dump({"authorization": {"mode": "open", "blacklist": ["bad.host"]}}))
    manager = AuthManager(str(path))
    assert manager.is_authorized("anything.example")
    assert not manager.is_authorized("bad.host")


def test_add_whitelist_persists(auth, tmp_path):
    auth.add_whitelist("*.lab.example")
    auth.add_whitelist("203.0.113.0/24")

    reloaded = AuthManager(str(tmp_path / "auth.yaml"))
    assert reloaded.is_authorized("box.lab.example")
    assert reloaded.is_authorized("203.0.113.7")


def test_log_audit(auth, tmp_path):
    auth.log_audit("fuzz_port", "127.0.0.1", "success")
    lines = (tmp_path / "logs" / "mcp_audit.log").read_text().splitlines()
    assert lines[0].endswith("| fuzz_port | 127.0.0.1 | success")


def test_unauthorized_target_rejected(server):
    result = asyncio.run(server.handle_call("fuzz_port", {"target": "example.com", "port": 80, "payloads": ["x"]}))
    assert result["success"] is False
    assert "not authorized" in result["error"]


def test_unknown_tool(server):
    result = asyncio.run(server.handle_call("nope", {"target": "127.0.0.1"}))
    assert result == {"success": False, "error": "Unknown tool: nope"}


def test_fuzz_port_requires_payloads(server):
    result = asyncio.run(server.handle_call("fuzz_port", {"target": "127.0.0.1", "port": 9}))
    assert result["success"] is False


def test_fuzz_port_invalid_config_reported(server):
    result = asyncio.run(server.handle_call("fuzz_port", {
        "target": "127.0.0.1", "port": 9, "payloads": ["x"], "ignore_regex": ["(bad"],
    }))
    assert result["success"] is False
    assert "Invalid configuration" in result["error"]


def test_fuzz_port_with_inline_payloads(server):
    async def scenario():
        async with servers.serve(servers.echo) as port:
            return await server.handle_call("fuzz_port", {
                "target": "127.0.0.1",
                "port": port,
                "payloads": ["PING", "HELLO", "quit"],
                "batch_size": 100,
                "timeout_ms": 200,
                "ignore": ["PING\\n"],
            })

    result = asyncio.run(scenario())

    assert result["success"] is True
    assert result["completed"] == 3
    assert result["suppressed"] == 1
    assert sorted(f["payload"] for f in result["findings"]) == ["HELLO", "quit"]
    assert {f["response"] for f in result["findings"]} == {"HELLO\n", "quit\n"}


def test_add_target_tool(server):
    result = asyncio.run(server.handle_call("add_target", {"target": "fuzz.example"}))
    assert result["success"] is True
    assert server.auth.is_authorized("fuzz.example")


def test_fuzz_port_reads_wordlist_from_wordlist_dir(server, tmp_path):
    (tmp_path / "wordlists").mkdir()
    (tmp_path / "wordlists" / "verbs.txt").write_text("PING\nHELLO\nquit\nNOOP\nUSER\n")

    async def scenario():
        async with servers.serve(servers.echo) as port:
            return await server.handle_call("fuzz_port", {
                "target": "127.0.0.1", "port": port, "wordlist": "verbs.txt",
                "batch_size": 100, "timeout_ms": 200,
            })

    result = asyncio.run(scenario())

    assert result["success"] is True
    assert result["total"] == 5
    assert result["interesting"] == 5
    assert 1 <= result["peak_in_flight"] <= 4


@pytest.mark.parametrize("name", ["../secret.txt", "/etc/passwd", "sub/../../secret.txt"])
def test_fuzz_port_rejects_wordlists_outside_wordlist_dir(server, tmp_path, name):
    (tmp_path / "wordlists").mkdir()
    (tmp_path / "secret.txt").write_text("hunter2\n")

    result = asyncio.run(server.handle_call("fuzz_port", {
        "target": "127.0.0.1", "port": 9, "wordlist": name,
    }))

    assert result["success"] is False
    assert "wordlists" in result["error"]
    assert "hunter2" not in str(result)
