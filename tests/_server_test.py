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
"""Tests for the HelloGrpc server."""

import argparse
import collections
import logging
import unittest

import grpc
import grpc_testing

from hello_compression import _protos
from hello_compression import resources
from hello_compression import server as server_lib

_HandlerCallDetails = collections.namedtuple(
    "_HandlerCallDetails", ("method", "invocation_metadata"))


class HelloGrpcTest(unittest.TestCase):

    def setUp(self):
        servicers = {_protos.SERVICE_DESCRIPTOR: server_lib.HelloGrpc()}
        self._test_server = grpc_testing.server_from_dictionary(
            servicers, grpc_testing.strict_real_time())

    def test_say_hello(self):
        name = "Neo"
        request = _protos.protos.HelloRequest(name=name)

        say_hello = self._test_server.invoke_unary_unary(
            method_descriptor=_protos.SAY_HELLO_DESCRIPTOR,
            invocation_metadata={},
            request=request,
            timeout=1)

        response, metadata, code, details = say_hello.termination()
        self.assertEqual("Hello Neo!", response.message)
        self.assertEqual(grpc.StatusCode.OK, code)

    def test_say_hello_empty_name(self):
        say_hello = self._test_server.invoke_unary_unary(
            method_descriptor=_protos.SAY_HELLO_DESCRIPTOR,
            invocation_metadata={},
            request=_protos.protos.HelloRequest(),
            timeout=1)
        response, _, code, _ = say_hello.termination()
        self.assertEqual("Hello !", response.message)
        self.assertEqual(grpc.StatusCode.OK, code)


class LoggingInterceptorTest(unittest.TestCase):

    def test_logs_and_continues(self):
        handler = object()
        details = _HandlerCallDetails(_protos.SAY_HELLO_METHOD,
                                      (("user-agent", "test"),))
        interceptor = server_lib.LoggingInterceptor()
        with self.assertLogs(server_lib.__name__, level="INFO") as logs:
            result = interceptor.intercept_service(lambda unused_details: handler,
                                                   details)
        self.assertIs(handler, result)
        self.assertIn("Intercepting /hello.HelloGrpc/SayHello", logs.output[0])
        self.assertIn("user-agent", logs.output[1])


class ServerCompressionArgumentsTest(unittest.TestCase):

    def test_no_compression(self):
        self.assertEqual({
            "compression": None,
            "options": ()
        }, server_lib.server_compression_arguments("none", True))

    def test_forced_gzip(self):
        self.assertEqual({
            "compression": grpc.Compression.Gzip,
            "options": ()
        }, server_lib.server_compression_arguments("gzip", False))

    def test_negotiated_gzip_uses_low_level(self):
        self.assertEqual(
            {
                "compression": None,
                "options": (("grpc.default_compression_level", 1),)
            }, server_lib.server_compression_arguments("gzip", True))

    def test_negotiated_deflate_is_rejected(self):
        with self.assertRaises(ValueError):
            server_lib.server_compression_arguments("deflate", True)

    def test_forced_deflate(self):
        self.assertEqual({
            "compression": grpc.Compression.Deflate,
            "options": ()
        }, server_lib.server_compression_arguments("deflate", False))

    def test_unknown_compression(self):
        with self.assertRaises(ValueError):
            server_lib.server_compression_arguments("snappy", True)


class ParseServerArgsTest(unittest.TestCase):

    def test_defaults(self):
        args = server_lib.parse_server_args([])
        self.assertEqual(8080, args.port)
        self.assertEqual("gzip", args.server_compression)
        self.assertTrue(args.honor_accept_encoding)
        self.assertEqual(logging.INFO, args.log_level)

    def test_overrides(self):
        args = server_lib.parse_server_args([
            "--port", "50051", "--server_compression", "none",
            "--honor_accept_encoding", "false", "--log_level", "debug"
        ])
        self.assertEqual(50051, args.port)
        self.assertEqual("none", args.server_compression)
        self.assertFalse(args.honor_accept_encoding)
        self.assertEqual(logging.DEBUG, args.log_level)

    def test_rejects_negotiated_deflate(self):
        with self.assertRaises(SystemExit):
            server_lib.parse_server_args(["--server_compression", "deflate"])
        args = server_lib.parse_server_args([
            "--server_compression", "deflate", "--honor_accept_encoding",
            "false"
        ])
        self.assertEqual("deflate", args.server_compression)

    def test_parse_bool(self):
        self.assertTrue(resources.parse_bool("true"))
        self.assertFalse(resources.parse_bool("false"))
        with self.assertRaises(argparse.ArgumentTypeError):
            resources.parse_bool("yes")

    def test_parse_log_level(self):
        self.assertEqual(logging.WARNING, resources.parse_log_level("warning"))
        with self.assertRaises(argparse.ArgumentTypeError):
            resources.parse_log_level("loud")


if __name__ == "__main__":
    logging.basicConfig()
    unittest.main(verbosity=2)
