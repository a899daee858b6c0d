from typer.testing import CliRunner
from websockets.exceptions import WebSocketException

from cli import app
from dashboard import DashboardClient, DashboardState

runner = CliRunner()

UNREACHABLE = "http://127.0.0.1:9"


def test_delete_can_be_cancelled():
    result = runner.invoke(app, ["delete", "1", "--server", UNREACHABLE], input="n\n")

    assert result.exit_code == 0
    assert "Deletion cancelled" in result.output


def test_unreachable_server_exits_with_error():
    result = runner.invoke(app, ["list", "--server", UNREACHABLE])

    assert result.exit_code == 1
    assert "Failed to reach the server" in result.output


def test_add_rejects_invalid_form_input():
    # name, price, status, description
    result = runner.invoke(app, ["add", "--server", UNREACHABLE], input="Widget\n-5\nnew\n\n")

    assert result.exit_code == 1
    assert "price" in result.output


async def _empty_load(self):
    return DashboardState()


def test_watch_reports_refused_realtime_channel(monkeypatch):
    monkeypatch.setattr(DashboardClient, "load", _empty_load)

    result = runner.invoke(app, ["watch", "--server", UNREACHABLE])

    assert result.exit_code == 1
    assert "Lost connection to the real-time channel" in result.output


def test_watch_reports_dropped_realtime_channel(monkeypatch):
    async def _drop(self, on_change=None):
        raise WebSocketException("connection closed abnormally")

    monkeypatch.setattr(DashboardClient, "load", _empty_load)
    monkeypatch.setattr(DashboardClient, "listen", _drop)

    result = runner.invoke(app, ["watch", "--server", UNREACHABLE])

    assert result.exit_code == 1
    assert "Lost connection to the real-time channel" in result.output
