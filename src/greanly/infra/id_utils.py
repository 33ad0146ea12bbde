"""Prefixed ID generation.

IDs use a ``{prefix}_{random}`` format so their origin is visible:

- ``msg_a8Kx3nQ9mP2r``  server-created chat message
- ``txt_L7wBd4Fj9Ks2``  text block inside a streamed response
- ``rsn_kJ3pW7mD4bNx``  reasoning block
- ``call_Qm2xT8vB1aZe`` tool call without a provider ID

Provider-generated tool call IDs are passed through unchanged.
"""

import secrets
import string

_ALPHABET = string.ascii_letters + string.digits
_DEFAULT_LENGTH = 12


def generate_id(prefix: str, length: int = _DEFAULT_LENGTH) -> str:
    """Return ``"{prefix}_{random}"`` with *length* alphanumeric characters."""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(length))
    return f"{prefix}_{suffix}"
