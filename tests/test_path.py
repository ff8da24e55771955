import pytest

from dex.errors import EncodingError
from dex.path import decode_path, encode_path, route_path
from factories import MID, TKA, TKB, direct_route, indirect_route, make_pool

A = "0x" + "aa" * 20
B = "0x" + "bb" * 20
C = "0x" + "cc" * 20


def test_single_hop_layout():
    encoded = encode_path([A, B], [3000])

    assert len(encoded) == 43
    assert encoded[:20] == bytes.fromhex("aa" * 20)
    assert encoded[20:23] == (3000).to_bytes(3, "big")
    assert encoded[23:] == bytes.fromhex("bb" * 20)


def test_two_hop_layout():
    encoded = encode_path([A, B, C], [500, 10000])

    assert len(encoded) == 66
    assert encoded.hex() == "aa" * 20 + "0001f4" + "bb" * 20 + "002710" + "cc" * 20


def test_single_token_encodes_to_bare_address():
    assert encode_path([A], []) == bytes.fromhex("aa" * 20)


def test_mismatched_lengths_rejected():
    with pytest.raises(EncodingError):
        encode_path([A, B], [])
    with pytest.raises(EncodingError):
        encode_path([A, B], [500, 3000])


def test_invalid_address_rejected():
    with pytest.raises(EncodingError, match="invalid token address"):
        encode_path([A, "0x1234"], [3000])


@pytest.mark.parametrize("fee", [-1, 2**24, True])
def test_fee_outside_uint24_rejected(fee):
    with pytest.raises(EncodingError, match="fee tier"):
        encode_path([A, B], [fee])


def test_decode_path_inverts_encode():
    tokens, fees = decode_path(encode_path([A, B, C], [500, 3000]))

    assert [token.lower() for token in tokens] == [A, B, C]
    assert fees == [500, 3000]


@pytest.mark.parametrize("size", [0, 20, 42, 44])
def test_decode_path_rejects_bad_length(size):
    with pytest.raises(EncodingError, match="invalid path length"):
        decode_path(b"\x00" * size)


def test_route_path_for_direct_route():
    route = direct_route(make_pool("0xp", TKA, TKB, fee=500))
    assert route_path(route, TKA, TKB) == ([TKA, TKB], [500])


def test_route_path_for_indirect_route_uses_intermediary():
    route = indirect_route(
        make_pool("0xp0", TKA, MID, fee=500),
        make_pool("0xp1", TKB, MID, fee=3000),
        MID,
    )
    assert route_path(route, TKA, TKB) == ([TKA, MID, TKB], [500, 3000])


@pytest.mark.parametrize("hops", [1, 2, 3])
def test_path_length_matches_token_and_fee_counts(hops):
    tokens = [A, B, C, A][: hops + 1]
    fees = [500, 3000, 10000][:hops]

    assert len(encode_path(tokens, fees)) == 20 * len(tokens) + 3 * len(fees)
