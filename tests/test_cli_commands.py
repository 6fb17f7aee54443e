from typer.testing import CliRunner

import procroute.client as client_module
from procroute import __version__
from procroute.cli.commands import app
from procroute.client import RpcClient
from procroute.rpc.messages import CallResult

runner = CliRunner()


class _StubTransport:
    def __init__(self, result: CallResult):
        self.result = result
        self.sent = []

    async def send(self, calls):
        self.sent.extend(calls)
        return [self.result for _ in calls]


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_procedures_lists_user_router():
    result = runner.invoke(app, ["procedures"])
    assert result.exit_code == 0
    for name in ("userList", "userById", "userCreate"):
        assert name in result.stdout
    assert "mutation" in result.stdout


def test_call_prints_output(monkeypatch):
    transport = _StubTransport(CallResult.success({"id": "1", "name": "Alice"}))
    monkeypatch.setattr(client_module, "create_client", lambda url, config: RpcClient(transport))

    result = runner.invoke(app, ["call", "userCreate", '{"name": "Alice"}', "--mutation"])
    assert result.exit_code == 0
    assert '"Alice"' in result.stdout
    assert transport.sent[0].name == "userCreate"
    assert transport.sent[0].kind.value == "mutation"
    assert transport.sent[0].input == {"name": "Alice"}


def test_call_reports_rpc_errors(monkeypatch):
    transport = _StubTransport(CallResult.failure("NOT_FOUND", "no procedure named 'nope'"))
    monkeypatch.setattr(client_module, "create_client", lambda url, config: RpcClient(transport))

    result = runner.invoke(app, ["call", "nope"])
    assert result.exit_code == 1
    assert "NOT_FOUND" in result.stdout


def test_call_rejects_invalid_json():
    result = runner.invoke(app, ["call", "userById", "{oops"])
    assert result.exit_code == 2
    assert "not valid JSON" in result.stdout
