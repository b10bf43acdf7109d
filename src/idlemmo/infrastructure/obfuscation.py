import base64
import random
from typing import Dict, Optional


DEFAULT_KEY = "fair-maiden"
PROTOCOL_VERSION = "1.0.0.1"

# field names the game's client script sends with travel and skill requests
_FIELD_NAMES = ("ts2mic5ytx", "qty6bx4peh")


def generate_obfuscated_data(key: Optional[str] = None, *, rng: Optional[random.Random] = None) -> str:
    """XOR a random number in [400, 600) against ``key`` and base64 the bytes."""
    key = key or DEFAULT_KEY
    source = rng or random
    text = str(source.randrange(400, 600))
    encrypted = bytes((ord(char) ^ ord(key[index % len(key)])) & 0xFF for index, char in enumerate(text))
    return base64.b64encode(encrypted).decode("ascii")


def anti_automation_fields(key: Optional[str] = None) -> Dict[str, str]:
    fields = {name: generate_obfuscated_data(key) for name in _FIELD_NAMES}
    fields["v"] = PROTOCOL_VERSION
    return fields
