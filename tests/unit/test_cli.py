from __future__ import annotations

from unittest.mock import AsyncMock, Mock

import pytest

import voice_flow_orchestrator.orchestrator.main as cli
from voice_flow_orchestrator.orchestrator.flows.loader import FlowNotFoundError


@pytest.fixture
def fake_orchestrator(monkeypatch, settings_env) -> Mock:
    orchestrator = Mock()
    orchestrator.close = AsyncMock()
    orchestrator.repository.reset = AsyncMock()
    monkeypatch.setattr(cli, "FlowOrchestrator", lambda settings: orchestrator)
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)
    return orchestrator


def test_missing_configuration_exits_2(monkeypatch, tmp_path, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    for key in ("ULTRAVOX_API_KEY", "NEO4J_URI", "NEO4J_USER", "NEO4J_PASSWORD", "BASE_DOMAIN"):
        monkeypatch.delenv(key, raising=False)

    assert cli.main(["list-flows"]) == 2
    assert "Configuration error" in capsys.readouterr().err


def test_unknown_flow_exits_3(fake_orchestrator, capsys) -> None:
    fake_orchestrator.execute_flow = AsyncMock(side_effect=FlowNotFoundError("Flow 'x' not found"))

    assert cli.main(["run-flow", "x", "do it"]) == 3
    assert "Flow 'x' not found" in capsys.readouterr().err
    fake_orchestrator.close.assert_awaited_once()


def test_run_flow_prints_result(fake_orchestrator, capsys) -> None:
    fake_orchestrator.execute_flow = AsyncMock(return_value="All done.")

    assert cli.main(["run-flow", "F", "do it"]) == 0
    assert capsys.readouterr().out.strip() == "All done."
    fake_orchestrator.execute_flow.assert_awaited_once_with("F", "do it")


def test_reset_requires_confirmation(fake_orchestrator) -> None:
    assert cli.main(["reset-db"]) == 2
    fake_orchestrator.repository.reset.assert_not_awaited()

    assert cli.main(["reset-db", "--yes"]) == 0
    fake_orchestrator.repository.reset.assert_awaited_once()


def test_unexpected_errors_exit_1(fake_orchestrator) -> None:
    fake_orchestrator.list_flows = AsyncMock(side_effect=RuntimeError("driver closed"))

    assert cli.main(["list-flows"]) == 1


def test_module_entrypoint_exposes_main() -> None:
    from voice_flow_orchestrator.cli import main

    assert main is cli.main
