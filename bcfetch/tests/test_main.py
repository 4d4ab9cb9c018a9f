"""Tests for the bcfetch command line."""

import io
import json
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from bcfetch import main as cli
from bcfetch.src.errors import UnsupportedChain


@pytest.fixture
def batch_file(tmp_path):
    path = tmp_path / "ops.json"
    path.write_text(json.dumps([{"kind": "binance", "params": {"symbol": "BTCUSDT"}}]))
    return path


@pytest.fixture
def dispatcher_cls():
    """Patch the dispatcher and chain registry used by main()."""
    with patch("bcfetch.main.OperationDispatcher") as dispatcher_cls, patch(
        "bcfetch.main.ChainRegistry"
    ) as registry_cls:
        registry_cls.from_rpc_urls.return_value.chain_ids = [1, 56, 137]
        dispatcher_cls.return_value.execute = AsyncMock(return_value=["67250.01"])
        yield dispatcher_cls


def run_main(monkeypatch, *args: str) -> None:
    monkeypatch.setattr(sys, "argv", ["bcfetch", *args])
    cli.main()


class TestEnvFlag:
    @pytest.mark.parametrize("value", ["1", "true", "TRUE", " yes "])
    def test_true(self, monkeypatch, value: str) -> None:
        monkeypatch.setenv("KEYED", value)
        assert cli.env_flag("KEYED") is True

    @pytest.mark.parametrize("value", ["", "0", "false", "no"])
    def test_false(self, monkeypatch, value: str) -> None:
        monkeypatch.setenv("KEYED", value)
        assert cli.env_flag("KEYED") is False

    def test_unset(self, monkeypatch) -> None:
        monkeypatch.delenv("KEYED", raising=False)
        assert cli.env_flag("KEYED") is False


class TestLoadBatch:
    def test_file(self, batch_file) -> None:
        assert cli.load_batch(str(batch_file)) == [
            {"kind": "binance", "params": {"symbol": "BTCUSDT"}}
        ]

    def test_stdin(self, monkeypatch) -> None:
        monkeypatch.setattr(sys, "stdin", io.StringIO('[{"kind": "http-get"}]'))
        assert cli.load_batch("-") == [{"kind": "http-get"}]


class TestMain:
    def test_prints_results(self, monkeypatch, capsys, batch_file, dispatcher_cls: MagicMock) -> None:
        monkeypatch.delenv("KEYED", raising=False)
        monkeypatch.delenv("STRICT_POSTPROCESS", raising=False)
        monkeypatch.delenv("FETCH_TIMEOUT", raising=False)

        run_main(monkeypatch, "--batch", str(batch_file))

        assert json.loads(capsys.readouterr().out) == ["67250.01"]
        kwargs = dispatcher_cls.call_args.kwargs
        assert kwargs == {"keyed": False, "strict_postprocess": False, "fetch_timeout": 10.0}
        dispatcher_cls.return_value.execute.assert_awaited_once_with(
            [{"kind": "binance", "params": {"symbol": "BTCUSDT"}}]
        )

    def test_environment_config(
        self, monkeypatch, capsys, batch_file, dispatcher_cls: MagicMock
    ) -> None:
        monkeypatch.setenv("BATCH_FILE", str(batch_file))
        monkeypatch.setenv("KEYED", "1")
        monkeypatch.setenv("STRICT_POSTPROCESS", "true")
        monkeypatch.setenv("FETCH_TIMEOUT", "2.5")

        run_main(monkeypatch)

        kwargs = dispatcher_cls.call_args.kwargs
        assert kwargs == {"keyed": True, "strict_postprocess": True, "fetch_timeout": 2.5}

    def test_cli_overrides_environment(
        self, monkeypatch, capsys, batch_file, dispatcher_cls: MagicMock
    ) -> None:
        monkeypatch.setenv("FETCH_TIMEOUT", "2.5")

        run_main(monkeypatch, "--batch", str(batch_file), "--fetch-timeout", "4")

        assert dispatcher_cls.call_args.kwargs["fetch_timeout"] == 4.0

    def test_batch_error_exits(
        self, monkeypatch, capsys, batch_file, dispatcher_cls: MagicMock
    ) -> None:
        dispatcher_cls.return_value.execute.side_effect = UnsupportedChain(999, [1, 56, 137])

        with pytest.raises(SystemExit) as exc_info:
            run_main(monkeypatch, "--batch", str(batch_file))

        assert exc_info.value.code == 1
        assert capsys.readouterr().out == ""

    def test_invalid_timeout(self, monkeypatch, batch_file, dispatcher_cls: MagicMock) -> None:
        with pytest.raises(SystemExit) as exc_info:
            run_main(monkeypatch, "--batch", str(batch_file), "--fetch-timeout", "0")

        assert exc_info.value.code == 2
        dispatcher_cls.assert_not_called()

    def test_missing_batch_file(self, monkeypatch, tmp_path, dispatcher_cls: MagicMock) -> None:
        with pytest.raises(SystemExit) as exc_info:
            run_main(monkeypatch, "--batch", str(tmp_path / "missing.json"))

        assert exc_info.value.code == 2
        dispatcher_cls.assert_not_called()
