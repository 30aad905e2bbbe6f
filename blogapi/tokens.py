"""
Signed bearer tokens.

A token is an HS256 JWT whose payload is ``{"id": <user id>}``.  No ``exp``
claim is issued, so a token stays valid until the signing secret changes.
"""
import jwt


class InvalidToken(Exception):
    """The token is absent, malformed, or its signature does not verify."""


def encode_token(user_id: int, secret: str, algorithm: str = "HS256") -> str:
    return jwt.encode({"id": user_id}, secret, algorithm=algorithm)


def decode_token(token: str | None, secret: str, algorithm: str = "HS256") -> int:
    """
    Verify *token* and return the user id it was issued for.

    Raises ``InvalidToken`` for an empty token, a bad signature, a token
    signed with a different algorithm, or a payload without an integer
    ``id`` claim.
    """
    if not token:
        raise InvalidToken("No token supplied")
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.PyJWTError as exc:
        raise InvalidToken(str(exc)) from exc

    user_id = payload.get("id")
    # bool is an int subclass; reject it explicitly.
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise InvalidToken("Token payload has no user id")
    return user_id
