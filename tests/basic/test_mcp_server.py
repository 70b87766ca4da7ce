from __future__ import annotations

import pytest

from repocontext_tool.manager import RepositoryContextManager
from repocontext_tool.mcp.server import (
    RepositoryContextTools,
    build_arg_parser,
    create_server,
    main,
)
from repocontext_tool.utils import GitTemporaryDirectory, safe_abs_path

SSH_OUTPUT = "origin\tgit@github.com:owner/repo.git (fetch)\n"


@pytest.mark.anyio
async def test_tools_share_one_cached_manager(fake_git, tmp_path):
    runner = fake_git(output=SSH_OUTPUT)
    tools = RepositoryContextTools(RepositoryContextManager(tmp_path, runner=runner))

    first = await tools.get_repository_context()
    second = await tools.get_repository_context()
    structured = await tools.inspect_repository_context()

    assert first == second
    assert "<owner>owner</owner>" in first
    assert structured.hosted_repo.slug == "owner/repo"
    assert len(runner.calls) == 1

    refreshed = await tools.refresh_repository_context()
    assert "<status>valid</status>" in refreshed
    assert len(runner.calls) == 2


@pytest.mark.anyio
async def test_server_tool_uses_default_root():
    with GitTemporaryDirectory(remotes={"origin": "https://github.com/owner/repo.git"}) as repo_dir:
        server = create_server(default_root=repo_dir)
        context = await server.repository_context_manager.get_context()

    assert context.working_directory == safe_abs_path(repo_dir)
    assert context.hosted_repo.url == "https://github.com/owner/repo.git"


def test_create_server_registers_tools():
    server = create_server()
    tool_names = {tool.name for tool in server._tool_manager.list_tools()}

    assert {
        "get_repository_context",
        "refresh_repository_context",
        "inspect_repository_context",
    }.issubset(tool_names)


def test_create_server_rejects_missing_root(tmp_path):
    with pytest.raises(ValueError):
        create_server(default_root=tmp_path / "missing")


def test_create_server_respects_log_level():
    server = create_server(log_level="debug")

    assert server.settings.log_level == "DEBUG"


def test_create_server_rejects_invalid_log_level():
    with pytest.raises(ValueError):
        create_server(log_level="nope")


def test_build_arg_parser_normalises_log_level():
    parser = build_arg_parser()
    args = parser.parse_args(["--log-level", "debug", "--hosting-domain", "gitlab.com"])

    assert args.log_level == "DEBUG"
    assert args.hosting_domain == "gitlab.com"


def test_main_handles_keyboard_interrupt(monkeypatch, capsys):
    def fake_run(*_args, **_kwargs):
        raise KeyboardInterrupt

    monkeypatch.setattr("repocontext_tool.mcp.server.anyio.run", fake_run)

    exit_code = main(["--transport", "stdio"])

    captured = capsys.readouterr()
    assert "awaiting MCP client handshake on stdio" in captured.err
    assert "interrupted by user" in captured.err
    assert exit_code == 130


def _capture_run(monkeypatch):
    calls = []

    def fake_run(func, *args):
        calls.append((func, args))

    monkeypatch.setattr("repocontext_tool.mcp.server.anyio.run", fake_run)
    return calls


def test_main_binds_sse_to_host_and_port(monkeypatch, capsys):
    calls = _capture_run(monkeypatch)

    exit_code = main(["--transport", "sse", "--host", "0.0.0.0", "--port", "9123"])

    assert exit_code == 0
    (func, args), = calls
    server = func.__self__
    assert func.__name__ == "run_sse_async"
    assert args == (None,)
    assert server.settings.host == "0.0.0.0"
    assert server.settings.port == 9123
    assert server.repository_context_manager.hosting_domain == "github.com"
    assert "serving sse transport at http://0.0.0.0:9123" in capsys.readouterr().err


def test_main_serves_http_on_streamable_path(monkeypatch, capsys):
    calls = _capture_run(monkeypatch)

    exit_code = main(["--transport", "http", "--port", "9124"])

    assert exit_code == 0
    (func, _), = calls
    server = func.__self__
    assert func.__name__ == "run_streamable_http_async"
    expected = f"http://{server.settings.host}:9124{server.settings.streamable_http_path}"
    assert expected in capsys.readouterr().err


def test_main_passes_hosting_domain_and_root(monkeypatch, capsys, tmp_path):
    calls = _capture_run(monkeypatch)

    exit_code = main(["--root", str(tmp_path), "--hosting-domain", "gitlab.com", "--host", "127.0.0.1"])

    assert exit_code == 0
    (func, _), = calls
    manager = func.__self__.repository_context_manager
    assert manager.hosting_domain == "gitlab.com"
    assert str(manager.root) == safe_abs_path(tmp_path)
    assert f"(repository root: {safe_abs_path(tmp_path)})" in capsys.readouterr().err


def test_main_rejects_missing_root(monkeypatch, capsys, tmp_path):
    calls = _capture_run(monkeypatch)

    with pytest.raises(SystemExit) as exc:
        main(["--root", str(tmp_path / "missing")])

    assert exc.value.code == 2
    assert "does not exist" in capsys.readouterr().err
    assert calls == []


def test_create_server_keeps_bind_host_apart_from_hosting_domain():
    server = create_server(hosting_domain="gitlab.com", host="0.0.0.0", port=9125)

    assert server.settings.host == "0.0.0.0"
    assert server.settings.port == 9125
    assert server.repository_context_manager.hosting_domain == "gitlab.com"
