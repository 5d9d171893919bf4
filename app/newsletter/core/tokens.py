import secrets
import string

SUBSCRIPTION_TOKEN_LENGTH = 25
TOKEN_ALPHABET = string.ascii_letters + string.digits


def generate_subscription_token() -> str:
    """Generate a random alphanumeric subscription token."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(SUBSCRIPTION_TOKEN_LENGTH))
