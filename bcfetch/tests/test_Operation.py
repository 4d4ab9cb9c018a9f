"""Unit tests for Operation parsing."""

import pytest

from bcfetch.src.errors import InvalidOperation, UnsupportedOperationKind
from bcfetch.src.Operation import Operation, OperationKind


class TestOperationFromDict:
    """Test Operation.from_dict."""

    def test_basic(self) -> None:
        op = Operation.from_dict({"kind": "binance", "params": {"symbol": "BTCUSDT"}})
        assert op.kind is OperationKind.BINANCE
        assert op.params == {"symbol": "BTCUSDT"}
        assert op.name is None
        assert op.postprocess is None

    def test_type_alias(self) -> None:
        """The legacy "type" key should be accepted for "kind"."""
        op = Operation.from_dict({"type": "http-get", "params": {"url": "https://x"}})
        assert op.kind is OperationKind.HTTP_GET

    def test_postprocess_top_level(self) -> None:
        op = Operation.from_dict(
            {"kind": "binance", "params": {"symbol": "X"}, "postprocess": ["toNumber"]}
        )
        assert op.postprocess == ["toNumber"]

    def test_postprocess_in_params(self) -> None:
        """postprocess inside params should be picked up."""
        op = Operation.from_dict(
            {"kind": "http-get", "params": {"url": "https://x", "postprocess": "json:a"}}
        )
        assert op.postprocess == "json:a"

    def test_top_level_postprocess_wins(self) -> None:
        op = Operation.from_dict(
            {
                "kind": "http-get",
                "params": {"url": "https://x", "postprocess": "json:a"},
                "postprocess": "json:b",
            }
        )
        assert op.postprocess == "json:b"

    def test_missing_params_defaults_to_empty(self) -> None:
        op = Operation.from_dict({"kind": "binance"})
        assert op.params == {}

    def test_name_kept(self) -> None:
        op = Operation.from_dict({"kind": "binance", "name": "btc"}, require_name=True)
        assert op.name == "btc"

    @pytest.mark.parametrize("raw", [None, "binance", 42, ["binance"]])
    def test_not_a_mapping(self, raw: object) -> None:
        with pytest.raises(InvalidOperation, match="invalid operation"):
            Operation.from_dict(raw)

    @pytest.mark.parametrize("raw", [{}, {"kind": ""}, {"kind": 5}, {"params": {}}])
    def test_missing_kind(self, raw: dict) -> None:
        with pytest.raises(InvalidOperation, match="no kind"):
            Operation.from_dict(raw)

    @pytest.mark.parametrize("name", [None, "", 3])
    def test_name_required(self, name: object) -> None:
        """A non-empty string name should be required when asked."""
        with pytest.raises(InvalidOperation, match='missing a "name"'):
            Operation.from_dict({"kind": "binance", "name": name}, require_name=True)

    def test_params_must_be_mapping(self) -> None:
        with pytest.raises(InvalidOperation, match="params must be a mapping"):
            Operation.from_dict({"kind": "binance", "params": ["BTCUSDT"]})

    def test_unknown_kind(self) -> None:
        with pytest.raises(UnsupportedOperationKind, match='unsupported operation kind: "ftp"'):
            Operation.from_dict({"kind": "ftp"})


class TestOperationKind:
    """Test the kind enum."""

    def test_kind_values(self) -> None:
        assert OperationKind.values() == [
            "http-get",
            "http-post",
            "balanceOf",
            "binance",
            "lpPrice",
            "call",
        ]
