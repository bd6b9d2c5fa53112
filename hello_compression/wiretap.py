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
"""Proxies plaintext HTTP/2 connections and records the gRPC headers on them.

gRPC Python does not hand the reserved grpc-encoding and grpc-accept-encoding
headers to applications, so a client that wants to know how a response was
encoded has to read them off the wire. This proxy sits between one client and
one server, forwards every byte unchanged and decodes the HTTP/2 header blocks
and gRPC message prefixes it sees along the way.

This proxy is not suitable for production.
"""

import datetime
import logging
import select
import socket
import threading

import hpack
from hyperframe import exceptions as hyperframe_exceptions
from hyperframe import frame as hyperframe_frame

_LOGGER = logging.getLogger(__name__)

_BUFFER_SIZE = 16384
_SELECT_TIMEOUT = datetime.timedelta(milliseconds=100)
_FRAME_HEADER_SIZE = 9
_CONNECTION_PREFACE = b"PRI * HTTP/2.0\r\n\r\nSM\r\n\r\n"
_GRPC_COMPRESSED_FLAG = 0x01

_OUTBOUND = "client->server"
_INBOUND = "server->client"


class WireTapError(Exception):
    """Raised when proxied traffic cannot be decoded as HTTP/2."""


class Exchange(object):
    """The headers and message flags observed on a single HTTP/2 stream."""

    def __init__(self, stream_id):
        self.stream_id = stream_id
        self.request_headers = ()
        self.response_headers = ()
        self.response_trailers = ()
        self.request_compressed = None
        self.response_compressed = None

    @staticmethod
    def _lookup(headers, name):
        for key, value in headers:
            if key == name:
                return value
        return None

    def request_header(self, name):
        return self._lookup(self.request_headers, name)

    def response_header(self, name):
        return self._lookup(self.response_headers, name)

    @property
    def path(self):
        return self.request_header(":path")

    @property
    def accept_encoding(self):
        return self.request_header("grpc-accept-encoding")

    @property
    def response_encoding(self):
        return self.response_header("grpc-encoding")

    @property
    def complete(self):
        return bool(self.response_trailers)

    def __repr__(self):
        return ("Exchange(stream_id={}, path={!r}, accept_encoding={!r}, "
                "response_encoding={!r}, response_compressed={!r})").format(
                    self.stream_id, self.path, self.accept_encoding,
                    self.response_encoding, self.response_compressed)


class _FrameReader(object):
    """Splits one direction of a connection into frames and header blocks."""

    def __init__(self, direction, expect_preface):
        self.direction = direction
        self.decoder = hpack.Decoder()
        self._buffer = b""
        self._expect_preface = expect_preface
        self._block_stream_id = None
        self._block_end_stream = False
        self._block = b""

    def feed(self, data):
        """Consumes bytes and returns the events completed by them.

        Events are tuples of ("headers", stream_id, headers, end_stream),
        ("data", stream_id, payload) or ("header_table_size", size).
        """
        self._buffer += data
        events = []
        if self._expect_preface:
            preface_length = len(_CONNECTION_PREFACE)
            available = self._buffer[:preface_length]
            if not _CONNECTION_PREFACE.startswith(available):
                raise WireTapError("Invalid HTTP/2 connection preface.")
            if len(self._buffer) < preface_length:
                return events
            self._buffer = self._buffer[preface_length:]
            self._expect_preface = False
        while len(self._buffer) >= _FRAME_HEADER_SIZE:
            try:
                frame, length = hyperframe_frame.Frame.parse_frame_header(
                    memoryview(self._buffer[:_FRAME_HEADER_SIZE]))
                end = _FRAME_HEADER_SIZE + length
                if len(self._buffer) < end:
                    break
                frame.parse_body(memoryview(self._buffer[_FRAME_HEADER_SIZE:end]))
            except hyperframe_exceptions.HyperframeError as error:
                raise WireTapError("Undecodable {} frame: {}".format(
                    self.direction, error))
            self._buffer = self._buffer[end:]
            events.extend(self._on_frame(frame))
        return events

    def _on_frame(self, frame):
        if isinstance(frame, hyperframe_frame.HeadersFrame):
            if self._block_stream_id is not None:
                raise WireTapError(
                    "HEADERS on stream {} interrupted a header block on "
                    "stream {}.".format(frame.stream_id, self._block_stream_id))
            self._block_stream_id = frame.stream_id
            self._block_end_stream = "END_STREAM" in frame.flags
            self._block = bytes(frame.data)
            if "END_HEADERS" in frame.flags:
                return (self._finish_block(),)
        elif isinstance(frame, hyperframe_frame.ContinuationFrame):
            if frame.stream_id != self._block_stream_id:
                raise WireTapError(
                    "Unexpected CONTINUATION on stream {}.".format(
                        frame.stream_id))
            self._block += bytes(frame.data)
            if "END_HEADERS" in frame.flags:
                return (self._finish_block(),)
        elif isinstance(frame, hyperframe_frame.DataFrame):
            if frame.data:
                return (("data", frame.stream_id, bytes(frame.data)),)
        elif isinstance(frame, hyperframe_frame.SettingsFrame):
            if ("ACK" not in frame.flags and
                    frame.HEADER_TABLE_SIZE in frame.settings):
                return (("header_table_size",
                         frame.settings[frame.HEADER_TABLE_SIZE]),)
        return ()

    def _finish_block(self):
        try:
            headers = tuple((name, value)
                            for name, value in self.decoder.decode(self._block))
        except hpack.HPACKError as error:
            raise WireTapError("Undecodable {} header block: {}".format(
                self.direction, error))
        event = ("headers", self._block_stream_id, headers,
                 self._block_end_stream)
        self._block_stream_id = None
        self._block_end_stream = False
        self._block = b""
        return event


class _ProxiedConnection(object):
    """One client socket paired with its own upstream socket."""

    def __init__(self, tap, client_socket, upstream_socket):
        self._tap = tap
        self.client_socket = client_socket
        self.upstream_socket = upstream_socket
        self._to_upstream = b""
        self._to_client = b""
        self._outbound = _FrameReader(_OUTBOUND, expect_preface=True)
        self._inbound = _FrameReader(_INBOUND, expect_preface=False)
        self._exchanges = {}

    def sockets(self):
        return (self.client_socket, self.upstream_socket)

    def pending_writes(self):
        pending = []
        if self._to_upstream:
            pending.append(self.upstream_socket)
        if self._to_client:
            pending.append(self.client_socket)
        return pending

    def read(self, sock):
        """Reads from sock; returns False once the peer has hung up."""
        data = sock.recv(_BUFFER_SIZE)
        if not data:
            return False
        if sock is self.client_socket:
            self._tap._count_bytes(sent=len(data))
            self._observe(self._outbound, self._inbound, data)
            self._to_upstream += data
        else:
            self._tap._count_bytes(received=len(data))
            self._observe(self._inbound, self._outbound, data)
            self._to_client += data
        return True

    def write(self, sock):
        if sock is self.upstream_socket:
            sock.sendall(self._to_upstream)
            self._to_upstream = b""
        else:
            sock.sendall(self._to_client)
            self._to_client = b""

    def close(self):
        for sock in self.sockets():
            sock.close()

    def _observe(self, reader, opposite_reader, data):
        for event in reader.feed(data):
            kind = event[0]
            if kind == "header_table_size":
                # Header blocks travelling the other way are encoded against
                # the table size this peer advertised.
                opposite_reader.decoder.max_allowed_table_size = event[1]
            elif kind == "headers":
                self._on_headers(reader.direction, *event[1:])
            else:
                self._on_data(reader.direction, *event[1:])

    def _on_headers(self, direction, stream_id, headers, end_stream):
        if direction == _OUTBOUND:
            if stream_id not in self._exchanges:
                exchange = Exchange(stream_id)
                exchange.request_headers = headers
                self._exchanges[stream_id] = exchange
                self._tap._add_exchange(exchange)
            return
        exchange = self._exchanges.get(stream_id)
        if exchange is None:
            _LOGGER.debug("Response headers for unknown stream %d", stream_id)
            return
        with self._tap._lock:
            # A trailers-only response is both the headers and the trailers.
            if not exchange.response_headers:
                exchange.response_headers = headers
            if end_stream:
                exchange.response_trailers = headers

    def _on_data(self, direction, stream_id, payload):
        exchange = self._exchanges.get(stream_id)
        if exchange is None:
            return
        compressed = bool(payload[0] & _GRPC_COMPRESSED_FLAG)
        with self._tap._lock:
            if direction == _OUTBOUND:
                if exchange.request_compressed is None:
                    exchange.request_compressed = compressed
            elif exchange.response_compressed is None:
                exchange.response_compressed = compressed


class Http2WireTap(object):
    """Proxies HTTP/2 connections to one server and records every exchange."""

    def __init__(self, gateway_address, gateway_port, bind_address="127.0.0.1"):
        self._bind_address = bind_address
        self._gateway_address = gateway_address
        self._gateway_port = gateway_port

        self._lock = threading.RLock()
        self._sent_byte_count = 0
        self._received_byte_count = 0
        self._exchanges = []

        self._stop_event = threading.Event()
        self._port = None
        self._listen_socket = None

        # Owned by the serving thread.
        self._connections = []

        self._thread = threading.Thread(target=self._run_proxy, daemon=True)

    @classmethod
    def for_target(cls, target, bind_address="127.0.0.1"):
        """Creates a tap in front of a "host:port" target."""
        host, separator, port = target.rpartition(":")
        if not separator or not port.isdigit():
            raise ValueError("Expected a host:port target, got {!r}".format(
                target))
        return cls(host.strip("[]") or "localhost", int(port), bind_address)

    def start(self):
        self._listen_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listen_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR,
                                       1)
        self._listen_socket.bind((self._bind_address, 0))
        self._listen_socket.listen(8)
        self._port = self._listen_socket.getsockname()[1]
        self._thread.start()
        _LOGGER.debug("Wiretap listening on %s for %s:%d", self.target,
                      self._gateway_address, self._gateway_port)

    def get_port(self):
        return self._port

    @property
    def target(self):
        return "{}:{}".format(self._bind_address, self._port)

    def _accept(self):
        client_socket, _ = self._listen_socket.accept()
        try:
            upstream_socket = socket.create_connection(
                (self._gateway_address, self._gateway_port))
        except OSError:
            _LOGGER.exception("Failed to reach %s:%d", self._gateway_address,
                              self._gateway_port)
            client_socket.close()
            return
        self._connections.append(
            _ProxiedConnection(self, client_socket, upstream_socket))

    def _connection_for(self, sock):
        for connection in self._connections:
            if sock in connection.sockets():
                return connection
        return None

    def _drop(self, connection):
        if connection in self._connections:
            self._connections.remove(connection)
            connection.close()

    def _handle_reads(self, sockets_to_read):
        for socket_to_read in sockets_to_read:
            if socket_to_read is self._listen_socket:
                self._accept()
                continue
            connection = self._connection_for(socket_to_read)
            if connection is None:
                continue
            try:
                still_open = connection.read(socket_to_read)
            except (WireTapError, OSError):
                _LOGGER.exception("Dropping proxied connection")
                still_open = False
            if not still_open:
                self._drop(connection)

    def _handle_writes(self, sockets_to_write):
        for socket_to_write in sockets_to_write:
            connection = self._connection_for(socket_to_write)
            if connection is None:
                continue
            try:
                connection.write(socket_to_write)
            except OSError:
                _LOGGER.exception("Dropping proxied connection")
                self._drop(connection)

    def _run_proxy(self):
        while not self._stop_event.is_set():
            expected_reads = [self._listen_socket]
            expected_writes = []
            for connection in self._connections:
                expected_reads.extend(connection.sockets())
                expected_writes.extend(connection.pending_writes())
            sockets_to_read, sockets_to_write, _ = select.select(
                expected_reads, expected_writes, (),
                _SELECT_TIMEOUT.total_seconds())
            self._handle_reads(sockets_to_read)
            self._handle_writes(sockets_to_write)
        for connection in self._connections:
            connection.close()
        self._connections = []

    def stop(self):
        self._stop_event.set()
        self._thread.join()
        self._listen_socket.close()

    def _count_bytes(self, sent=0, received=0):
        with self._lock:
            self._sent_byte_count += sent
            self._received_byte_count += received

    def _add_exchange(self, exchange):
        with self._lock:
            self._exchanges.append(exchange)

    def get_byte_count(self):
        with self._lock:
            return self._sent_byte_count, self._received_byte_count

    def exchanges(self):
        with self._lock:
            return tuple(self._exchanges)

    def last_exchange(self):
        with self._lock:
            return self._exchanges[-1] if self._exchanges else None

    def reset(self):
        with self._lock:
            self._sent_byte_count = 0
            self._received_byte_count = 0
            self._exchanges = []

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
