"""
Tests for the ABI codec.

Covers call encoding (static and dynamic arguments), bounds-checked
decoding against declared shapes, and the hex helpers.
"""

import pytest

from a402.abi.codec import (
    DecodedTuple,
    FieldShape,
    canonical_signature,
    decode_address_word,
    decode_return,
    encode_arguments,
    encode_call,
    event_topic,
    function_selector,
    hex_to_bytes,
    normalize_address,
    parse_signature,
    read_word,
    shape_of,
    strip_selector,
    to_hex,
)
from a402.core.contract import HAS_ACCESS_SIGNATURE, RESOURCE_SHAPE
from a402.core.exceptions import (
    AbiDecodeError,
    AbiEncodeError,
    TruncatedDataError,
    UnsupportedTypeError,
)
from conftest import PAYER, address_topic, word


def string_tail(text: str) -> bytes:
    raw = text.encode("utf-8")
    return word(len(raw)) + raw + bytes(-len(raw) % 32)


class TestSignatures:
    """Tests for signature parsing, selectors and topics."""

    def test_parse_signature(self):
        assert parse_signature("hasAccess(string,address)") == ("hasAccess", ["string", "address"])

    def test_parse_no_arguments(self):
        assert parse_signature("totalSupply()") == ("totalSupply", [])

    def test_parse_ignores_spaces(self):
        assert parse_signature("transfer(address, uint256)") == ("transfer", ["address", "uint256"])

    @pytest.mark.parametrize("bad", ["hasAccess", "hasAccess(string,,address)", "(uint256)", ""])
    def test_malformed_signature(self, bad):
        with pytest.raises(AbiEncodeError):
            parse_signature(bad)

    def test_selector_is_four_bytes(self):
        assert function_selector("balanceOf(address)") == bytes.fromhex("70a08231")

    def test_event_topic_is_full_digest(self):
        assert len(event_topic("Transfer(address,address,uint256)")) == 32

    def test_uint_alias_is_canonicalized(self):
        assert parse_signature("uintOf(uint,uint8)") == ("uintOf", ["uint256", "uint8"])
        assert canonical_signature("setPrice(uint)") == "setPrice(uint256)"

    def test_uint_alias_selector(self):
        assert function_selector("setPrice(uint)") == bytes.fromhex("91b7f5ed")
        assert encode_call("transfer(address, uint)", [PAYER, 1])[:4] == bytes.fromhex("a9059cbb")
        assert event_topic("Transfer(address,address,uint)") == event_topic("Transfer(address,address,uint256)")


class TestEncoding:
    """Tests for encode_call / encode_arguments."""

    def test_static_call(self):
        data = encode_call("transfer(address,uint256)", [PAYER, 1])
        assert data[:4].hex() == "a9059cbb"
        assert len(data) == 4 + 64
        assert data[4:36] == address_topic(PAYER)
        assert data[36:68] == word(1)

    def test_has_access_layout(self):
        """string offset, address word, then the length-prefixed string."""
        data = encode_call(HAS_ACCESS_SIGNATURE, ["video-001", PAYER])
        assert data[:4] == function_selector(HAS_ACCESS_SIGNATURE)
        args = data[4:]
        assert args[0:32] == word(64)
        assert args[32:64] == address_topic(PAYER)
        assert args[64:] == string_tail("video-001")

    def test_address_case_insensitive(self):
        upper = "0x" + PAYER[2:].upper()
        assert encode_arguments(["address"], [upper]) == encode_arguments(["address"], [PAYER])

    def test_dynamic_offsets_are_aligned(self):
        args = encode_arguments(["string", "uint256", "bytes"], ["x" * 33, 5, b""])
        first = int.from_bytes(args[0:32], "big")
        second = int.from_bytes(args[64:96], "big")
        assert first == 96
        assert second == 96 + 32 + 64
        assert first % 32 == 0 and second % 32 == 0
        assert args[second:second + 32] == word(0)
        assert len(args) == second + 32

    def test_empty_string(self):
        assert encode_arguments(["string"], [""]) == word(32) + word(0)

    def test_bool_and_bytes32(self):
        nonce = bytes(range(32))
        args = encode_arguments(["bool", "bytes32"], [True, "0x" + nonce.hex()])
        assert args == word(1) + nonce

    def test_max_uint256(self):
        assert encode_arguments(["uint256"], [2**256 - 1]) == b"\xff" * 32

    def test_arity_mismatch(self):
        with pytest.raises(AbiEncodeError):
            encode_call(HAS_ACCESS_SIGNATURE, ["video-001"])

    @pytest.mark.parametrize("abi_type", ["int256", "uint7", "uint512", "address[]", "bytes16", "tuple"])
    def test_unsupported_type(self, abi_type):
        with pytest.raises(UnsupportedTypeError):
            encode_arguments([abi_type], [0])

    @pytest.mark.parametrize(
        "abi_type,value",
        [
            ("uint256", -1),
            ("uint256", 2**256),
            ("uint8", 256),
            ("uint256", "10"),
            ("uint256", True),
            ("address", "0x1234"),
            ("address", "0x" + "zz" * 20),
            ("bool", 1),
            ("bytes32", b"\x01" * 31),
            ("bytes32", "0xnothex"),
            ("string", b"bytes"),
            ("bytes", "text"),
        ],
    )
    def test_invalid_values_rejected(self, abi_type, value):
        with pytest.raises(AbiEncodeError):
            encode_arguments([abi_type], [value])


class TestDecoding:
    """Tests for decode_return against declared shapes."""

    def resource_data(self, content_type="video/youtube", content_ref="dQw4w9WgXcQ") -> bytes:
        type_tail = string_tail(content_type)
        head = (
            word(10**15)  # price
            + word(1)  # lifetime
            + word(1)  # active
            + word(1)  # exists
            + word(8 * 32)  # content_type offset
            + word(8 * 32 + len(type_tail))  # content_ref offset
            + word(3)  # total_payments
            + word(3 * 10**15)  # total_revenue
        )
        return head + type_tail + string_tail(content_ref)

    def test_decode_resource(self):
        fields = decode_return(self.resource_data(), RESOURCE_SHAPE)
        assert fields.price == 10**15
        assert fields.lifetime is True
        assert fields.active is True
        assert fields.exists is True
        assert fields.content_type == "video/youtube"
        assert fields.content_ref == "dQw4w9WgXcQ"
        assert fields.total_payments == 3
        assert fields.total_revenue == 3 * 10**15

    def test_decode_from_hex_string(self):
        data = self.resource_data()
        assert decode_return(to_hex(data), RESOURCE_SHAPE) == decode_return(data, RESOURCE_SHAPE)

    def test_zero_length_string_is_empty(self):
        fields = decode_return(self.resource_data(content_type=""), RESOURCE_SHAPE)
        assert fields.content_type == ""
        assert fields.content_ref == "dQw4w9WgXcQ"

    def test_large_integers_keep_precision(self):
        shape = (FieldShape("amount", "uint256"),)
        assert decode_return(word(2**255 + 1), shape).amount == 2**255 + 1

    def test_too_short_for_head(self):
        with pytest.raises(TruncatedDataError) as exc_info:
            decode_return(self.resource_data()[: 7 * 32], RESOURCE_SHAPE)
        assert exc_info.value.needed == 8 * 32

    def test_empty_return_data(self):
        with pytest.raises(TruncatedDataError):
            decode_return(b"", (FieldShape("granted", "bool"),))

    def test_offset_past_end(self):
        shape = (FieldShape("s", "string"),)
        with pytest.raises(TruncatedDataError):
            decode_return(word(10_000), shape)

    def test_huge_offset_does_not_overflow(self):
        shape = (FieldShape("s", "string"),)
        with pytest.raises(TruncatedDataError):
            decode_return(word(2**256 - 1), shape)

    def test_length_past_end(self):
        shape = (FieldShape("s", "string"),)
        with pytest.raises(TruncatedDataError):
            decode_return(word(32) + word(100) + b"short", shape)

    def test_invalid_bool(self):
        with pytest.raises(AbiDecodeError):
            decode_return(word(2), (FieldShape("flag", "bool"),))

    def test_address_with_dirty_high_bytes(self):
        with pytest.raises(AbiDecodeError):
            decode_return(b"\x01" + bytes(31), (FieldShape("who", "address"),))

    def test_uint8_out_of_range(self):
        with pytest.raises(AbiDecodeError):
            decode_return(word(256), (FieldShape("small", "uint8"),))

    def test_invalid_utf8(self):
        with pytest.raises(AbiDecodeError):
            decode_return(word(32) + word(2) + b"\xff\xfe" + bytes(30), (FieldShape("s", "string"),))

    def test_static_nested_tuple_is_inline(self):
        shape = (
            FieldShape("pair", "tuple", (FieldShape("x", "uint256"), FieldShape("ok", "bool"))),
            FieldShape("z", "uint256"),
        )
        fields = decode_return(word(7) + word(1) + word(9), shape)
        assert fields.pair.x == 7
        assert fields.pair.ok is True
        assert fields.z == 9

    def test_dynamic_nested_tuple_uses_offset(self):
        inner = (FieldShape("x", "uint256"), FieldShape("s", "string"))
        shape = (FieldShape("a", "uint256"), FieldShape("t", "tuple", inner))
        data = word(7) + word(64) + encode_arguments(["uint256", "string"], [1, "hi"])
        fields = decode_return(data, shape)
        assert fields.a == 7
        assert fields.t.as_dict() == {"x": 1, "s": "hi"}

    def test_tuple_without_components(self):
        with pytest.raises(UnsupportedTypeError):
            FieldShape("t", "tuple")


class TestRoundTrip:
    """The codec decodes what it encodes."""

    @pytest.mark.parametrize(
        "signature,args",
        [
            (HAS_ACCESS_SIGNATURE, ["video-001", PAYER]),
            ("payForAccess(string,bytes32)", ["video-001", bytes(range(32))]),
            (
                "mixed(string,uint256,address,bool,bytes,string,uint8)",
                ["ünïcode ✓", 2**200, PAYER, False, b"\x00\x01" * 40, "", 255],
            ),
        ],
    )
    def test_round_trip(self, signature, args):
        decoded = decode_return(strip_selector(encode_call(signature, args)), shape_of(signature))
        assert decoded.values() == tuple(args)

    def test_strip_selector_needs_four_bytes(self):
        with pytest.raises(AbiDecodeError):
            strip_selector(b"\x01\x02")


class TestDecodedTuple:
    """Tests for DecodedTuple access."""

    @pytest.fixture
    def decoded(self) -> DecodedTuple:
        return DecodedTuple([("price", 5), ("active", True)])

    def test_access_by_name_index_and_attribute(self, decoded):
        assert decoded["price"] == decoded[0] == decoded.price == 5
        assert decoded.active is True

    def test_unknown_field(self, decoded):
        with pytest.raises(KeyError):
            decoded["missing"]
        with pytest.raises(AttributeError):
            decoded.missing

    def test_equality_and_dict(self, decoded):
        assert decoded == DecodedTuple([("price", 5), ("active", True)])
        assert decoded != DecodedTuple([("price", 6), ("active", True)])
        assert decoded.as_dict() == {"price": 5, "active": True}
        assert len(decoded) == 2
        assert list(decoded) == [5, True]


class TestHexHelpers:
    """Tests for hex and address helpers."""

    def test_hex_round_trip(self):
        assert hex_to_bytes(to_hex(b"\x00\xff")) == b"\x00\xff"

    def test_empty_hex(self):
        assert hex_to_bytes("0x") == b""
        assert hex_to_bytes(None) == b""

    @pytest.mark.parametrize("bad", ["0x123", "0xzz", 12])
    def test_malformed_hex(self, bad):
        with pytest.raises(AbiDecodeError):
            hex_to_bytes(bad)

    def test_normalize_address(self):
        assert normalize_address(" 0x" + "AB" * 20 + " ") == "0x" + "ab" * 20
        assert normalize_address("ab" * 20) == "0x" + "ab" * 20

    def test_read_word_bounds(self):
        with pytest.raises(TruncatedDataError):
            read_word(bytes(40), 16)

    def test_decode_address_word(self):
        assert decode_address_word(address_topic(PAYER)) == PAYER
