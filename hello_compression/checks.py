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
"""Named pass/fail assertions recorded across scenario runs."""

import collections
import logging

_LOGGER = logging.getLogger(__name__)

CheckResult = collections.namedtuple("CheckResult", ("name", "passed"))


class Checks(object):
    """Records the outcome of named predicates evaluated against a subject."""

    def __init__(self):
        self._results = []
        self._tallies = collections.OrderedDict()

    def check(self, subject, predicates):
        """Evaluates every predicate against subject.

        Args:
          subject: The value handed to each predicate.
          predicates: A mapping from check name to a callable taking the
            subject and returning a truthy value on success.

        Returns:
          True if every predicate passed.
        """
        all_passed = True
        for name, predicate in predicates.items():
            passed = bool(predicate(subject))
            self._record(name, passed)
            if passed:
                _LOGGER.debug("check passed: %s", name)
            else:
                all_passed = False
                _LOGGER.warning("check failed: %s", name)
        return all_passed

    def _record(self, name, passed):
        self._results.append(CheckResult(name, passed))
        passes, fails = self._tallies.get(name, (0, 0))
        if passed:
            passes += 1
        else:
            fails += 1
        self._tallies[name] = (passes, fails)

    @property
    def results(self):
        return tuple(self._results)

    @property
    def passed(self):
        return sum(1 for result in self._results if result.passed)

    @property
    def failed(self):
        return sum(1 for result in self._results if not result.passed)

    @property
    def all_passed(self):
        return self.failed == 0

    def summary(self):
        """Yields (name, passes, fails) per check name in first-seen order."""
        for name, (passes, fails) in self._tallies.items():
            yield name, passes, fails
