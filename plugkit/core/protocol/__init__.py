"""Wire codecs — protobuf envelopes and descriptor conversion."""

from plugkit.core.protocol.descriptors import (
    decode_descriptor_set,
    encode_descriptor_set,
    schema_file_from_proto,
    schema_file_to_proto,
)
from plugkit.core.protocol.envelope import (
    decode_request,
    decode_response,
    encode_request,
    encode_response,
)

__all__ = [
    "decode_descriptor_set",
    "decode_request",
    "decode_response",
    "encode_descriptor_set",
    "encode_request",
    "encode_response",
    "schema_file_from_proto",
    "schema_file_to_proto",
]
