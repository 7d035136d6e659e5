"""
Typed attribute storage.

AttributeStore maps registered MetadataKeys to values whose runtime type
must match the key's declared type. Mismatched writes are rejected and
logged; the previous value (or absence) is left untouched.
"""

from typing import Any, Dict, Iterator, List, Optional

from mediacache.common.logging import get_logger
from ..errors import ValidationError
from ..registry import KeyType, MetadataKey

logger = get_logger(__name__)


class AttributeStore:
    """
    Typed key -> value dictionary.

    Usage:
        store = AttributeStore()
        store.set_string(KEY_TITLE, "Blue Monday")
        store.set_int(KEY_TITLE, 7)          # rejected, returns False
        store.get(KEY_TITLE)                 # "Blue Monday"
    """

    def __init__(self):
        self._data: Dict[MetadataKey, Any] = {}

    @staticmethod
    def _validate(key: MetadataKey, value: Any) -> None:
        if not key.type.accepts(value):
            raise ValidationError(
                f"Value of type {type(value).__name__} rejected for "
                f"{key.type.value} key '{key.name}'",
                data={"key": key.name, "value_type": type(value).__name__},
            )

    def set(self, key: MetadataKey, value: Any) -> bool:
        """
        Set key to value; None removes the key.

        Returns:
            False if value was rejected because of its type
        """
        if value is None:
            self.remove(key)
            return True
        try:
            self._validate(key, value)
        except ValidationError:
            return False
        self._data[key] = value
        return True

    def set_string(self, key: MetadataKey, value: Optional[str]) -> bool:
        return self.set(key, value)

    def set_int(self, key: MetadataKey, value: Optional[int]) -> bool:
        return self.set(key, value)

    def set_float(self, key: MetadataKey, value: Optional[float]) -> bool:
        return self.set(key, value)

    def set_binary(self, key: MetadataKey, value: Optional[bytes]) -> bool:
        return self.set(key, value)

    def get(self, key: MetadataKey) -> Any:
        """Value of key, or None if absent."""
        return self._data.get(key)

    def _get_typed(self, key: MetadataKey, key_type: KeyType) -> Any:
        if key.type is not key_type:
            return None
        return self._data.get(key)

    def get_string(self, key: MetadataKey) -> Optional[str]:
        return self._get_typed(key, KeyType.STRING)

    def get_int(self, key: MetadataKey) -> Optional[int]:
        return self._get_typed(key, KeyType.INT)

    def get_float(self, key: MetadataKey) -> Optional[float]:
        return self._get_typed(key, KeyType.FLOAT)

    def get_binary(self, key: MetadataKey) -> Optional[bytes]:
        return self._get_typed(key, KeyType.BINARY)

    def has(self, key: MetadataKey) -> bool:
        return key in self._data

    def remove(self, key: MetadataKey) -> None:
        self._data.pop(key, None)

    def get_keys(self) -> List[MetadataKey]:
        """Keys holding a value, in insertion order."""
        return list(self._data)

    def items(self) -> Iterator:
        return iter(self._data.items())

    def __contains__(self, key: MetadataKey) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AttributeStore):
            return NotImplemented
        return self._data == other._data

    def __repr__(self) -> str:
        fields = ", ".join(f"{k.name}={v!r}" for k, v in self._data.items())
        return f"{self.__class__.__name__}({fields})"
