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
"""Setup module for the HelloGrpc compression negotiation checks."""

import os

import setuptools

_PACKAGE_PATH = os.path.realpath(os.path.dirname(__file__))
_README_PATH = os.path.join(_PACKAGE_PATH, "README.rst")

# Ensure we're in the proper directory whether or not we're being used by pip.
os.chdir(os.path.dirname(os.path.abspath(__file__)))

_VERSION = "1.0.0"

CLASSIFIERS = [
    "Development Status :: 4 - Beta",
    "Programming Language :: Python",
    "Programming Language :: Python :: 3",
    "License :: OSI Approved :: Apache Software License",
]

PACKAGE_DIRECTORIES = {
    "": ".",
}

PACKAGE_DATA = {
    "hello_compression.protos": [
        "hello.proto",
    ],
}

INSTALL_REQUIRES = (
    "grpcio>=1.62.0",
    "grpcio-tools>=1.62.0",
    "protobuf>=4.25.0",
    "hpack>=4.0.0",
    "hyperframe>=6.0.0",
)

TESTS_REQUIRE = (
    "grpcio-testing>=1.62.0",
    "pytest>=7.0",
)

ENTRY_POINTS = {
    "console_scripts": [
        "hello-compression-check=hello_compression.client:main",
        "hello-compression-server=hello_compression.server:main",
    ],
}

setuptools.setup(
    name="hello-compression-check",
    version=_VERSION,
    description="Checks that a gRPC server honors compression negotiation",
    long_description=open(_README_PATH, "r").read(),
    author="The gRPC Authors",
    author_email="grpc-io@googlegroups.com",
    url="https://grpc.io",
    license="Apache License 2.0",
    classifiers=CLASSIFIERS,
    package_dir=PACKAGE_DIRECTORIES,
    packages=setuptools.find_packages(".", include=("hello_compression",
                                                    "hello_compression.*")),
    package_data=PACKAGE_DATA,
    python_requires=">=3.8",
    install_requires=INSTALL_REQUIRES,
    extras_require={"test": TESTS_REQUIRE},
    entry_points=ENTRY_POINTS,
)
