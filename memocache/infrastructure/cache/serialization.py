"""JSON codec used by the store's "compression" path.

Nothing is actually compressed. Values are stored as JSON text so that
readers and writers never share a mutable object with the cache, which
gives deep-copy semantics on both `set` and `get`. JSON type erasure
applies: tuples come back as lists and dict keys become strings.
"""

import json
from typing import Any, Optional

from memocache.domain.models.errors import SerializationError


class JsonCodec:
    """Encodes values to JSON text and back.

    `key` is only used to label errors.
    """

    def __init__(self, ensure_ascii: bool = False):
        self.ensure_ascii = ensure_ascii

    def encode(self, value: Any, key: Optional[str] = None) -> str:
        try:
            return json.dumps(value, ensure_ascii=self.ensure_ascii)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Cannot encode {type(value).__name__} as JSON: {e}", key=key) from e

    def decode(self, data: str, key: Optional[str] = None) -> Any:
        try:
            return json.loads(data)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Corrupted cache value: {e}", key=key) from e

    def size_of(self, value: Any) -> int:
        """Approximate byte size of the value's JSON form.

        Never raises: values JSON cannot represent are measured by their repr.
        """
        try:
            text = json.dumps(value, ensure_ascii=self.ensure_ascii, default=repr)
        except (TypeError, ValueError):
            # circular references
            text = repr(value)
        return len(text.encode("utf-8"))

    def size_of_encoded(self, data: str) -> int:
        return len(data.encode("utf-8"))
