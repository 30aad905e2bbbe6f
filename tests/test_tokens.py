"""Token codec and ``authorization`` header parsing."""
import jwt
import pytest

from blogapi.auth import extract_credential
from blogapi.tokens import InvalidToken, decode_token, encode_token

SECRET = "unit-test-secret-key-that-is-32-bytes-long"


def test_encode_decode_returns_user_id():
    token = encode_token(7, SECRET)
    assert decode_token(token, SECRET) == 7


def test_payload_is_just_the_id():
    token = encode_token(42, SECRET)
    assert jwt.decode(token, SECRET, algorithms=["HS256"]) == {"id": 42}


def test_encoding_is_deterministic():
    assert encode_token(3, SECRET) == encode_token(3, SECRET)


@pytest.mark.parametrize("token", [None, ""])
def test_missing_token_rejected(token):
    with pytest.raises(InvalidToken):
        decode_token(token, SECRET)


def test_malformed_token_rejected():
    with pytest.raises(InvalidToken):
        decode_token("not-a-jwt", SECRET)


def test_token_signed_with_other_secret_rejected():
    token = encode_token(1, "another-secret-key-that-is-32-bytes-long")
    with pytest.raises(InvalidToken):
        decode_token(token, SECRET)


def test_token_signed_with_other_algorithm_rejected():
    token = jwt.encode({"id": 1}, SECRET, algorithm="HS512")
    with pytest.raises(InvalidToken):
        decode_token(token, SECRET, "HS256")


@pytest.mark.parametrize("payload", [{}, {"id": "1"}, {"id": True}, {"sub": 1}])
def test_payload_without_integer_id_rejected(payload):
    token = jwt.encode(payload, SECRET, algorithm="HS256")
    with pytest.raises(InvalidToken):
        decode_token(token, SECRET)


# ---------------------------------------------------------------------------
# extract_credential
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "header, expected",
    [
        (None, ""),
        ("", ""),
        ("   ", ""),
        ("abc.def.ghi", "abc.def.ghi"),
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("bearer   abc.def.ghi  ", "abc.def.ghi"),
    ],
)
def test_extract_credential(header, expected):
    assert extract_credential(header) == expected
