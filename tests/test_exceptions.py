"""Tests for the exception hierarchy."""

import pytest

from a402.core.exceptions import (
    A402Error,
    AbiDecodeError,
    AbiEncodeError,
    AbiError,
    ConfigurationError,
    PaymentRequiredError,
    RpcError,
    TransportError,
    TruncatedDataError,
    UnsupportedTypeError,
    ValidationError,
)


class TestHierarchy:
    """Every package error is catchable as A402Error."""

    @pytest.mark.parametrize(
        "error",
        [
            ConfigurationError("x"),
            ValidationError("x"),
            TransportError("x"),
            RpcError("x", method="eth_call"),
            AbiEncodeError("x"),
            UnsupportedTypeError("tuple"),
            AbiDecodeError("x"),
            TruncatedDataError("x", offset=0, needed=32, available=0),
            PaymentRequiredError("x", {}),
        ],
    )
    def test_base_class(self, error):
        assert isinstance(error, A402Error)

    def test_rpc_error_is_transport_error(self):
        assert issubclass(RpcError, TransportError)

    def test_codec_errors(self):
        assert issubclass(AbiEncodeError, AbiError)
        assert issubclass(TruncatedDataError, AbiDecodeError)
        assert issubclass(UnsupportedTypeError, AbiEncodeError)


class TestMessages:
    """Tests for error formatting and attributes."""

    def test_details_in_str(self):
        error = A402Error("Bad thing", {"field": "price"})
        assert str(error) == "Bad thing | Details: {'field': 'price'}"

    def test_plain_str(self):
        assert str(ValidationError("Bad hash")) == "Bad hash"

    def test_transport_status(self):
        error = TransportError("HTTP 503", status_code=503, url="https://rpc.test")

        assert error.is_server_error() is True
        assert error.is_rate_limited() is False
        assert error.url == "https://rpc.test"

    def test_rpc_error_str(self):
        error = RpcError("execution reverted", method="eth_call", code=3)
        assert str(error) == "[eth_call] execution reverted (code: 3)"

    def test_truncated_str(self):
        error = TruncatedDataError("Word out of range", offset=64, needed=96, available=70)
        assert str(error) == "Word out of range | offset: 64, needed: 96, available: 70"

    def test_unsupported_type(self):
        error = UnsupportedTypeError("int8")
        assert error.abi_type == "int8"
        assert "int8" in str(error)

    def test_payment_required(self):
        error = PaymentRequiredError("Payment Required", {"amount": "0.001"}, tx_hash="0xab")

        assert error.requirements == {"amount": "0.001"}
        assert error.tx_hash == "0xab"
