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
"""Checks whether a HelloGrpc server honors compression negotiation.

Calls SayHello once per scenario over a plaintext connection and records
whether the status, the greeting and the response encoding are as expected.
"""

import argparse
import contextlib
import logging
import sys

import grpc

from hello_compression import _protos
from hello_compression import checks as checks_lib
from hello_compression import negotiation
from hello_compression import resources
from hello_compression import scenarios as scenarios_lib
from hello_compression import wiretap as wiretap_lib

_DESCRIPTION = "Checks that a HelloGrpc server honors compression negotiation."
_LOGGER = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10.0
_DEFAULT_NAME_PREFIX = "grpc-py"

_CLIENT_ADVERTISEMENTS = {
    scenarios_lib.Scenario.WITH_GZIP: "client accepts gzip",
    scenarios_lib.Scenario.WITHOUT_GZIP: "client only accepts identity",
    scenarios_lib.Scenario.NO_HEADER: "client does not advertise support",
}


def expected_behavior(scenario, server_compression):
    encoding = scenario.expected_encoding(server_compression)
    if negotiation.is_compressed(encoding):
        outcome = "Server SHOULD compress with {}".format(encoding)
    else:
        outcome = "Server SHOULD NOT compress"
    return "{} ({}, server uses {})".format(outcome,
                                            _CLIENT_ADVERTISEMENTS[scenario],
                                            server_compression)


def _positive_int(value):
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(
            "Expected a positive integer, got {}".format(value))
    return number


def parse_client_args(argv=None):
    parser = argparse.ArgumentParser(description=_DESCRIPTION)
    parser.add_argument(
        "--server",
        default=resources.DEFAULT_SERVER,
        type=str,
        help="The host-port pair at which to reach the server.")
    parser.add_argument(
        "--server_compression",
        default=negotiation.GZIP,
        choices=negotiation.compression_names(),
        help="The compression the server is configured with.")
    parser.add_argument(
        "--scenarios",
        nargs="+",
        default=[scenario.value for scenario in scenarios_lib.Scenario],
        choices=[scenario.value for scenario in scenarios_lib.Scenario],
        help="The scenarios to run, in order.")
    parser.add_argument("--iterations",
                        default=1,
                        type=_positive_int,
                        help="How many times to run the scenarios.")
    parser.add_argument("--timeout",
                        default=_DEFAULT_TIMEOUT,
                        type=float,
                        help="Deadline of each call in seconds.")
    parser.add_argument("--name_prefix",
                        default=_DEFAULT_NAME_PREFIX,
                        type=str,
                        help="Prefix of the name sent in each request.")
    parser.add_argument(
        "--use_wiretap",
        default=True,
        type=resources.parse_bool,
        help="Read response headers off the wire through a local proxy.")
    parser.add_argument("--log_level",
                        default=resources.DEFAULT_LOG_LEVEL,
                        type=resources.parse_log_level,
                        help="The logging level, e.g. DEBUG or INFO.")
    return parser.parse_args(argv)


@contextlib.contextmanager
def _maybe_wiretap(server, use_wiretap):
    if not use_wiretap:
        yield None
        return
    with wiretap_lib.Http2WireTap.for_target(server) as wiretap:
        yield wiretap


def _log_response(scenario, response):
    _LOGGER.info("Request %s:", scenario.label)
    _LOGGER.info("  - Status: %s", response.status)
    _LOGGER.info("  - Message: %s",
                 response.message.message if response.message else None)
    _LOGGER.info("  - Metadata: %s", response.headers)
    if response.details:
        _LOGGER.info("  - Details: %s", response.details)
    encoding = response.headers.get(negotiation.ENCODING_KEY)
    if encoding:
        _LOGGER.info("  - Response encoding: %s", encoding)
    else:
        _LOGGER.info("  - Response NOT compressed (no grpc-encoding header)")
    exchange = response.exchange
    if exchange is not None:
        _LOGGER.debug("  - Advertised grpc-accept-encoding: %s",
                      exchange.accept_encoding)
        _LOGGER.debug("  - Compressed response message: %s",
                      exchange.response_compressed)


def run_scenario(target, scenario, checks, server_compression, name_prefix,
                 timeout, wiretap=None):
    _LOGGER.info("=== %s ===", scenario.title)
    with grpc.insecure_channel(
            target, options=scenario.channel_options()) as channel:
        stub = _protos.services.HelloGrpcStub(channel)
        response = scenarios_lib.invoke(stub,
                                        scenario,
                                        name_prefix,
                                        timeout=timeout,
                                        wiretap=wiretap)
    _log_response(scenario, response)
    scenarios_lib.check_response(checks, scenario, response,
                                 server_compression, name_prefix)
    return response


def _log_summary(checks, scenarios, server_compression):
    _LOGGER.info("=== Summary ===")
    for name, passes, fails in checks.summary():
        _LOGGER.info("  %s %s (%d passed, %d failed)",
                     "PASS" if not fails else "FAIL", name, passes, fails)
    _LOGGER.info("Expected behavior:")
    for scenario in scenarios:
        _LOGGER.info("  - %s: %s", scenario.label,
                     expected_behavior(scenario, server_compression))


def run_checks(server,
               scenarios=tuple(scenarios_lib.Scenario),
               server_compression=negotiation.GZIP,
               iterations=1,
               timeout=_DEFAULT_TIMEOUT,
               name_prefix=_DEFAULT_NAME_PREFIX,
               use_wiretap=True):
    """Runs every scenario against server, iterations times.

    Returns:
      The Checks recorded across all runs.
    """
    if iterations < 1:
        raise ValueError("iterations must be positive, got {}".format(
            iterations))
    checks = checks_lib.Checks()
    with _maybe_wiretap(server, use_wiretap) as wiretap:
        target = wiretap.target if wiretap is not None else server
        for iteration in range(iterations):
            _LOGGER.debug("Iteration %d of %d", iteration + 1, iterations)
            for scenario in scenarios:
                run_scenario(target, scenario, checks, server_compression,
                             name_prefix, timeout, wiretap)
    _log_summary(checks, scenarios, server_compression)
    return checks


def main(argv=None):
    args = parse_client_args(argv)
    logging.basicConfig(level=args.log_level)
    checks = run_checks(
        args.server,
        scenarios=tuple(
            scenarios_lib.Scenario(value) for value in args.scenarios),
        server_compression=args.server_compression,
        iterations=args.iterations,
        timeout=args.timeout,
        name_prefix=args.name_prefix,
        use_wiretap=args.use_wiretap)
    _LOGGER.info("%d checks passed, %d failed", checks.passed, checks.failed)
    return 0 if checks.all_passed else 1


if __name__ == "__main__":
    sys.exit(main())
