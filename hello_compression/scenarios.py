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
"""The SayHello calls made under each compression negotiation setting."""

import collections
import enum
import logging

import grpc

from hello_compression import _protos
from hello_compression import negotiation

_LOGGER = logging.getLogger(__name__)

Response = collections.namedtuple(
    "Response",
    ("status", "message", "headers", "trailers", "details", "exchange"))


def _request_metadata(encoding=None, accept_encoding=None):
    metadata = []
    if encoding is not None:
        metadata.append((negotiation.ENCODING_KEY, encoding))
    if accept_encoding is not None:
        metadata.append((negotiation.ACCEPT_ENCODING_KEY, accept_encoding))
    return tuple(metadata)


_SCENARIO_METADATA = {
    "with_gzip": _request_metadata(negotiation.GZIP, negotiation.GZIP),
    "without_gzip": _request_metadata(accept_encoding=negotiation.IDENTITY),
    "no_header": _request_metadata(),
}

_SCENARIO_TITLES = {
    "with_gzip": "gRPC call WITH gzip compression",
    "without_gzip": "gRPC call WITHOUT gzip compression",
    "no_header": "gRPC call with NO accept-encoding header",
}


@enum.unique
class Scenario(enum.Enum):
    WITH_GZIP = "with_gzip"
    WITHOUT_GZIP = "without_gzip"
    NO_HEADER = "no_header"

    @property
    def label(self):
        return self.value.replace("_", " ")

    @property
    def title(self):
        return _SCENARIO_TITLES[self.value]

    @property
    def metadata(self):
        """The negotiation headers this scenario asks the client to send."""
        return _SCENARIO_METADATA[self.value]

    def _metadata_value(self, key):
        return dict(self.metadata).get(key)

    @property
    def request_encoding(self):
        return self._metadata_value(negotiation.ENCODING_KEY)

    @property
    def accept_encoding(self):
        return self._metadata_value(negotiation.ACCEPT_ENCODING_KEY)

    def request_name(self, prefix):
        return "{}-{}".format(prefix, self.value.replace("_", "-"))

    def channel_options(self):
        # The core library writes grpc-accept-encoding itself from the set of
        # enabled algorithms; a client sending no header advertises identity.
        return ((negotiation.ENABLED_ALGORITHMS_ARGUMENT,
                 negotiation.enabled_algorithms_bitset(self.accept_encoding)),)

    def call_compression(self):
        if self.request_encoding is None:
            return None
        return negotiation.compression_for(self.request_encoding)

    def expected_encoding(self, server_compression):
        return negotiation.negotiate(server_compression, self.accept_encoding)

    def expects_compression(self, server_compression):
        return negotiation.is_compressed(
            self.expected_encoding(server_compression))


def _response_headers(call, exchange):
    headers = {}
    if exchange is not None:
        for key, value in exchange.response_headers:
            if not key.startswith(":"):
                headers[key] = value
    if call is not None:
        for key, value in call.initial_metadata() or ():
            headers[key] = value
    return headers


def _trailers(call):
    if call is None:
        return {}
    return dict(call.trailing_metadata() or ())


def _opened_exchange(wiretap, exchanges_before):
    # A call that never reached the server opens no stream; an older
    # exchange must not stand in for it.
    if wiretap is None:
        return None
    exchanges = wiretap.exchanges()
    if len(exchanges) <= exchanges_before:
        return None
    return exchanges[-1]


def invoke(stub, scenario, name_prefix, timeout=None, wiretap=None):
    """Calls SayHello the way the scenario prescribes.

    Args:
      stub: A HelloGrpcStub bound to a channel created with the scenario's
        channel options.
      scenario: The Scenario to run.
      name_prefix: Prefix of the name sent in the request.
      timeout: Optional deadline in seconds.
      wiretap: Optional Http2WireTap the stub's channel goes through.

    Returns:
      A Response. RPC failures are reported through its status.
    """
    request = _protos.protos.HelloRequest(name=scenario.request_name(name_prefix))
    call = None
    message = None
    exchanges_before = len(wiretap.exchanges()) if wiretap is not None else 0
    try:
        message, call = stub.SayHello.with_call(
            request,
            timeout=timeout,
            compression=scenario.call_compression())
        status = call.code()
        details = call.details()
    except grpc.RpcError as rpc_error:
        _LOGGER.debug("%s: RPC failed: %s", scenario.label, rpc_error)
        if isinstance(rpc_error, grpc.Call):
            call = rpc_error
            status = rpc_error.code()
            details = rpc_error.details()
        else:
            status = grpc.StatusCode.UNKNOWN
            details = str(rpc_error)
    exchange = _opened_exchange(wiretap, exchanges_before)
    return Response(status=status,
                    message=message,
                    headers=_response_headers(call, exchange),
                    trailers=_trailers(call),
                    details=details,
                    exchange=exchange)


def _not_compressed(response):
    if response is None or not response.headers:
        return True
    return not negotiation.is_compressed(
        response.headers.get(negotiation.ENCODING_KEY))


def check_response(checks, scenario, response, server_compression, name_prefix):
    """Records this scenario's checks against a response.

    Returns:
      True if every check passed.
    """
    expected_message = "Hello {}!".format(scenario.request_name(name_prefix))

    def status_is_ok(r):
        return r is not None and r.status is grpc.StatusCode.OK

    def message_is_correct(r):
        return (r is not None and r.message is not None and
                r.message.message == expected_message)

    def has_encoding_header(r):
        return r is not None and negotiation.ENCODING_KEY in r.headers

    label = scenario.label
    predicates = collections.OrderedDict()
    predicates["{}: status is OK".format(label)] = status_is_ok
    predicates["{}: response message is correct".format(label)] = (
        message_is_correct)
    if scenario.expects_compression(server_compression):
        predicates["{}: response has grpc-encoding header".format(label)] = (
            has_encoding_header)
    else:
        predicates["{}: response is NOT compressed".format(label)] = (
            _not_compressed)
    return checks.check(response, predicates)
