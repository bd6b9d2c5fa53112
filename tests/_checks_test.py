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
"""Tests the named check recorder."""

import logging
import unittest

from hello_compression import checks as checks_lib


class ChecksTest(unittest.TestCase):

    def setUp(self):
        self._checks = checks_lib.Checks()

    def test_all_passing(self):
        passed = self._checks.check(3, {
            "positive": lambda n: n > 0,
            "odd": lambda n: n % 2 == 1,
        })
        self.assertTrue(passed)
        self.assertEqual(2, self._checks.passed)
        self.assertEqual(0, self._checks.failed)
        self.assertTrue(self._checks.all_passed)

    def test_failure_is_recorded(self):
        with self.assertLogs(checks_lib.__name__, level="WARNING") as logs:
            passed = self._checks.check(4, {
                "positive": lambda n: n > 0,
                "odd": lambda n: n % 2 == 1,
            })
        self.assertFalse(passed)
        self.assertFalse(self._checks.all_passed)
        self.assertEqual(
            (checks_lib.CheckResult("positive", True),
             checks_lib.CheckResult("odd", False)), self._checks.results)
        self.assertIn("check failed: odd", logs.output[0])

    def test_summary_accumulates_by_name(self):
        for value in (1, 2, 3):
            self._checks.check(value, {"odd": lambda n: n % 2 == 1})
        self._checks.check(None, {"none": lambda n: n is None})
        self.assertEqual([("odd", 2, 1), ("none", 1, 0)],
                         list(self._checks.summary()))

    def test_predicate_errors_propagate(self):
        with self.assertRaises(ZeroDivisionError):
            self._checks.check(0, {"inverse": lambda n: 1 / n})

    def test_empty(self):
        self.assertTrue(self._checks.all_passed)
        self.assertEqual([], list(self._checks.summary()))


if __name__ == "__main__":
    logging.basicConfig()
    unittest.main(verbosity=2)
