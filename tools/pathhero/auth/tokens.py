"""Session token creation and verification helpers.

Uses PyJWT with HS256 algorithm for signing.
Tokens carry the userid and an expiry timestamp.
"""

from datetime import datetime, timedelta, timezone

import jwt


def create_token(userid: str, secret: str, expiry_hours: int = 24) -> str:
    """Create a signed session token for a user.

    Args:
        userid: The authenticated userid.
        secret: Secret key used for HS256 signing.
        expiry_hours: Token validity duration in hours (default 24).
    """
    now = datetime.now(timezone.utc)
    payload = {
        "userid": userid,
        "iat": now,
        "exp": now + timedelta(hours=expiry_hours),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def verify_token(token: str, secret: str) -> str | None:
    """Return the userid carried by ``token``.

    ``None`` if the token is expired, malformed, or has an invalid signature.
    """
    try:
        payload = jwt.decode(token, secret, algorithms=["HS256"])
        return payload["userid"]
    except (jwt.InvalidTokenError, KeyError):
        return None
