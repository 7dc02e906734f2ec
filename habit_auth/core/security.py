import hmac
import secrets


def generate_code(length: int = 6) -> str:
    """Fixed-width numeric one-time code from the OS CSPRNG."""
    return "".join(secrets.choice("0123456789") for _ in range(length))


def codes_match(submitted: str, expected: str) -> bool:
    return hmac.compare_digest(submitted.encode("utf-8"), expected.encode("utf-8"))
