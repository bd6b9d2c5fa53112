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
"""Message and service modules parsed from hello.proto at import time.

Several APIs used here are in an experimental state.
"""

import os
import sys

import grpc

_PROTO_PATH = "hello_compression/protos/hello.proto"

# NOTE: The path to the .proto file must be reachable from an entry on
# sys.path, so the directory holding this package is added when missing.
_PACKAGE_ROOT = os.path.dirname(
    os.path.dirname(os.path.abspath(__file__))
)
if _PACKAGE_ROOT not in sys.path:
    sys.path.append(_PACKAGE_ROOT)

protos, services = grpc.protos_and_services(_PROTO_PATH)

SAY_HELLO_METHOD = "/hello.HelloGrpc/SayHello"

SERVICE_DESCRIPTOR = protos.DESCRIPTOR.services_by_name["HelloGrpc"]
SAY_HELLO_DESCRIPTOR = SERVICE_DESCRIPTOR.methods_by_name["SayHello"]
