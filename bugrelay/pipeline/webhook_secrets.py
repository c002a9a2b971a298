"""
Webhook Secrets
Inbound webhooks authenticate callers by a random token in the URL path.
"""
import hmac
import secrets

SECRET_BYTES = 20  # 40 hex characters


def generate_webhook_secret() -> str:
    return secrets.token_hex(SECRET_BYTES)


def verify_secret(provided: str, expected: str) -> bool:
    """Constant-time comparison; an unset expected secret never matches."""
    if not expected or not provided:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def webhook_path(kind: str, secret: str) -> str:
    return f"/hooks/{kind}/{secret}"
