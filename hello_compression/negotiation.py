# Copyright 2026 gRPC authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Compression negotiation between a server setting and a client's
grpc-accept-encoding header."""

import grpc

ENCODING_KEY = "grpc-encoding"
ACCEPT_ENCODING_KEY = "grpc-accept-encoding"
ENABLED_ALGORITHMS_ARGUMENT = "grpc.compression_enabled_algorithms_bitset"

IDENTITY = "identity"
DEFLATE = "deflate"
GZIP = "gzip"

_COMPRESSION_OPTIONS = {
    "none": grpc.Compression.NoCompression,
    IDENTITY: grpc.Compression.NoCompression,
    DEFLATE: grpc.Compression.Deflate,
    GZIP: grpc.Compression.Gzip,
}

# Bit positions follow grpc_compression_algorithm in the core library.
_ALGORITHM_BITS = {
    IDENTITY: 1 << 0,
    DEFLATE: 1 << 1,
    GZIP: 1 << 2,
}


def parse_accept_encoding(value):
    """Splits a grpc-accept-encoding value into normalized encoding names.

    Args:
      value: The raw header value, e.g. " gzip , identity ", or None.

    Returns:
      A tuple of lower-cased encoding names in the order given.
    """
    if not value:
        return ()
    encodings = (encoding.strip().lower() for encoding in value.split(","))
    return tuple(encoding for encoding in encodings if encoding)


def negotiate(server_compression, accept_encoding):
    """Determines the encoding a server should answer with.

    Args:
      server_compression: The server's configured compression, e.g. "gzip",
        "identity" or None.
      accept_encoding: The client's grpc-accept-encoding header value.

    Returns:
      The negotiated encoding name, IDENTITY when the response should not be
      compressed.
    """
    if not server_compression:
        return IDENTITY
    server_compression = server_compression.strip().lower()
    if server_compression in ("", "none", IDENTITY):
        return IDENTITY

    accepted = parse_accept_encoding(accept_encoding)
    if not accepted:
        return IDENTITY
    if accepted == (IDENTITY,):
        return IDENTITY
    if server_compression in accepted:
        return server_compression
    return IDENTITY


def is_compressed(encoding):
    return bool(encoding) and encoding.strip().lower() != IDENTITY


def enabled_algorithms_bitset(accept_encoding):
    """Channel argument value making a client advertise exactly these encodings.

    Identity is always enabled. Unknown encodings are ignored.
    """
    bitset = _ALGORITHM_BITS[IDENTITY]
    for encoding in parse_accept_encoding(accept_encoding):
        bitset |= _ALGORITHM_BITS.get(encoding, 0)
    return bitset


def compression_for(name):
    """Maps an encoding name to the grpc.Compression enum."""
    try:
        return _COMPRESSION_OPTIONS[name.strip().lower()]
    except KeyError:
        raise ValueError("Unsupported compression: {!r}".format(name))


def compression_names():
    return ("none", DEFLATE, GZIP)
