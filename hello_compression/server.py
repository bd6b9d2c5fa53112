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
"""A HelloGrpc server capable of compression."""

import argparse
from concurrent import futures
import logging

import grpc

from hello_compression import _protos
from hello_compression import negotiation
from hello_compression import resources

_DESCRIPTION = "A HelloGrpc server capable of compression."
_LOGGER = logging.getLogger(__name__)

_SERVER_HOST = "[::]"

_DEFAULT_COMPRESSION_LEVEL_ARGUMENT = "grpc.default_compression_level"
# GRPC_COMPRESS_LEVEL_LOW. The core library answers with gzip when the peer
# accepts it, otherwise with the next accepted algorithm, so only gzip can be
# negotiated this way.
_COMPRESSION_LEVEL_LOW = 1
_NEGOTIABLE_COMPRESSION = negotiation.GZIP


class HelloGrpc(_protos.services.HelloGrpcServicer):

    def SayHello(self, request, context):
        return _protos.protos.HelloReply(message="Hello {}!".format(
            request.name))


class LoggingInterceptor(grpc.ServerInterceptor):
    """Logs the method and invocation metadata of every incoming call."""

    def __init__(self, logger=None):
        self._logger = logger or _LOGGER

    def intercept_service(self, continuation, handler_call_details):
        self._logger.info("Intercepting %s", handler_call_details.method)
        self._logger.info("Metadata %s",
                          handler_call_details.invocation_metadata)
        return continuation(handler_call_details)


def server_compression_arguments(server_compression, honor_accept_encoding):
    """Computes grpc.server keyword arguments for a compression setting.

    Args:
      server_compression: One of "none", "deflate" or "gzip".
      honor_accept_encoding: If true, responses are only compressed when the
        client's grpc-accept-encoding header lists gzip. If false, the
        algorithm is applied to every response.

    Returns:
      A dict with the "compression" and "options" keyword arguments.

    Raises:
      ValueError: If the compression is unknown, or is deflate while
        honoring grpc-accept-encoding.
    """
    compression = negotiation.compression_for(server_compression)
    if compression == grpc.Compression.NoCompression:
        return {"compression": None, "options": ()}
    if not honor_accept_encoding:
        return {"compression": compression, "options": ()}
    if server_compression.strip().lower() != _NEGOTIABLE_COMPRESSION:
        raise ValueError(
            "Only {} can be negotiated against grpc-accept-encoding, got "
            "{!r}".format(_NEGOTIABLE_COMPRESSION, server_compression))
    # A compression level, unlike an algorithm, is resolved against the
    # encodings the peer accepts.
    return {
        "compression": None,
        "options": ((_DEFAULT_COMPRESSION_LEVEL_ARGUMENT,
                     _COMPRESSION_LEVEL_LOW),),
    }


def create_server(address,
                  server_compression=negotiation.GZIP,
                  honor_accept_encoding=True,
                  interceptors=None,
                  max_workers=None):
    """Creates an insecure HelloGrpc server bound to address.

    Returns:
      A (server, port) tuple. The server has not been started.
    """
    compression_arguments = server_compression_arguments(
        server_compression, honor_accept_encoding)
    if interceptors is None:
        interceptors = (LoggingInterceptor(),)
    server = grpc.server(futures.ThreadPoolExecutor(max_workers=max_workers),
                         interceptors=interceptors,
                         compression=compression_arguments["compression"],
                         options=compression_arguments["options"])
    _protos.services.add_HelloGrpcServicer_to_server(HelloGrpc(), server)
    port = server.add_insecure_port(address)
    return server, port


def run_server(port, server_compression, honor_accept_encoding):
    address = "{}:{}".format(_SERVER_HOST, port)
    server, bound_port = create_server(address, server_compression,
                                       honor_accept_encoding)
    server.start()
    _LOGGER.info(
        "Server listening on port %d with %s compression (honor "
        "grpc-accept-encoding: %s)", bound_port, server_compression,
        honor_accept_encoding)
    server.wait_for_termination()


def parse_server_args(argv=None):
    parser = argparse.ArgumentParser(description=_DESCRIPTION)
    parser.add_argument("--port",
                        type=int,
                        default=resources.DEFAULT_PORT,
                        help="The port on which the server will listen.")
    parser.add_argument(
        "--server_compression",
        default=negotiation.GZIP,
        choices=negotiation.compression_names(),
        help="The compression method the server applies to responses.")
    parser.add_argument(
        "--honor_accept_encoding",
        default=True,
        type=resources.parse_bool,
        help="Only compress when the client accepts the algorithm.")
    parser.add_argument("--log_level",
                        default=resources.DEFAULT_LOG_LEVEL,
                        type=resources.parse_log_level,
                        help="The logging level, e.g. DEBUG or INFO.")
    args = parser.parse_args(argv)
    try:
        server_compression_arguments(args.server_compression,
                                     args.honor_accept_encoding)
    except ValueError as error:
        parser.error(str(error))
    return args


def main(argv=None):
    args = parse_server_args(argv)
    logging.basicConfig(level=args.log_level)
    run_server(args.port, args.server_compression, args.honor_accept_encoding)


if __name__ == "__main__":
    main()
