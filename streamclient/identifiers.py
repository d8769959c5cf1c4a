"""Request identifier generation."""

import secrets
import string
import uuid
from enum import Enum


_CHARSET = string.ascii_letters + string.digits
RANDOM_IDENTIFIER_LENGTH = 15


class IdentifierType(str, Enum):
    """Kind of identifier attached to each request for tracing."""

    NONE = ""
    UUID = "uuid"
    RANDOM = "random"


def random_string(length: int = RANDOM_IDENTIFIER_LENGTH) -> str:
    """Cryptographically secure alphanumeric string."""
    return "".join(secrets.choice(_CHARSET) for _ in range(length))


def generate_identifier(identifier_type: IdentifierType | str) -> str:
    """Generate an identifier of the requested kind (empty for ``NONE``)."""
    identifier_type = IdentifierType(identifier_type)
    if identifier_type is IdentifierType.UUID:
        return str(uuid.uuid4())
    if identifier_type is IdentifierType.RANDOM:
        return random_string()
    return ""
