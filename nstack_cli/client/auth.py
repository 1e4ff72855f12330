"""
Request Signing.

Signs outgoing requests with the user's secret key. The signature is an
HS256 JWT over the request method, path, install-id cookie and a SHA-256
digest of the body, so the server can verify that nothing it relies on
was altered in transit. Signing is deterministic: the same request and
key always yield the same token.

Signing must be the last change made to a request before it is sent.
"""

import hashlib

import httpx
from jose import jwt

from nstack_cli.core.config import AuthSettings

SIGNING_ALGORITHM = "HS256"
USER_HEADER = "X-NStack-User"


def request_claims(request: httpx.Request, user_id: str) -> dict[str, str]:
    """Claims covered by the signature of request."""
    claims = {
        "sub": user_id,
        "method": request.method,
        "path": request.url.raw_path.decode("ascii"),
        "body_sha256": hashlib.sha256(request.content).hexdigest(),
    }
    cookie = request.headers.get("Cookie")
    if cookie is not None:
        claims["cookie"] = cookie
    return claims


def sign_request(request: httpx.Request, auth: AuthSettings) -> httpx.Request:
    """
    Attach the user and signature headers to request.

    Args:
        request: Fully built request; its body must already be set
        auth: User id and secret key

    Returns:
        The same request, with X-NStack-User and Authorization headers set
    """
    token = jwt.encode(
        request_claims(request, auth.user_id),
        auth.secret_key,
        algorithm=SIGNING_ALGORITHM,
    )
    request.headers[USER_HEADER] = auth.user_id
    request.headers["Authorization"] = f"Bearer {token}"
    return request
