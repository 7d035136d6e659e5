"""Text codec for media records."""

from .serializer import (
    MediaCodec,
    SerializeMode,
    serialize,
    deserialize,
    parse_int,
    parse_float,
    scheme_for,
    class_name_for_scheme,
)

__all__ = [
    'MediaCodec',
    'SerializeMode',
    'serialize',
    'deserialize',
    'parse_int',
    'parse_float',
    'scheme_for',
    'class_name_for_scheme',
]
