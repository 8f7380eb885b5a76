#! /usr/bin/env python
#
# CFD - Cloud Foundry Deployer
# Copyright (C) 2026 - GRyCAP - Universitat Politecnica de Valencia
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

import sys
import time
import unittest

sys.path.append(".")
sys.path.append("..")
from CFD.retry import Backoff, Deadline, wait_until, retry_call
from CFD.exceptions import PollingExhausted
from mock import patch, MagicMock


class TestRetry(unittest.TestCase):
    """
    Class to test the backoff and retry functions
    """

    def test_backoff(self):
        backoff = Backoff(5, 12)
        self.assertEqual([backoff.next_delay() for _ in range(4)], [5, 10, 12, 12])

    @patch('CFD.retry.time.sleep')
    def test_wait_until_first_true(self, sleep):
        poll = MagicMock(side_effect=[1, 2, 3])
        value = wait_until(poll, lambda v: v >= 2)
        self.assertEqual(value, 2)
        self.assertEqual(poll.call_count, 2)
        self.assertEqual(sleep.call_count, 1)
        self.assertEqual(sleep.call_args_list[0][0][0], 5)

    @patch('CFD.retry.time.sleep')
    def test_wait_until_max_attempts(self, sleep):
        poll = MagicMock(return_value="PENDING")
        with self.assertRaises(PollingExhausted) as ex:
            wait_until(poll, lambda v: v == "READY", max_attempts=3, initial_delay=5, max_delay=60)
        self.assertEqual(ex.exception.attempts, 3)
        self.assertEqual(poll.call_count, 3)
        self.assertEqual([c[0][0] for c in sleep.call_args_list], [5, 10])

    def test_wait_until_overall_cap(self):
        poll = MagicMock(return_value=False)
        start = time.monotonic()
        with self.assertRaises(PollingExhausted) as ex:
            wait_until(poll, lambda v: v, max_attempts=None, initial_delay=0.01, max_delay=0.02, overall_cap=0.1)
        elapsed = time.monotonic() - start
        self.assertGreaterEqual(elapsed, 0.1)
        self.assertLess(elapsed, 1)
        self.assertEqual(ex.exception.attempts, poll.call_count)

    @patch('CFD.retry.time.sleep')
    def test_retry_call(self, sleep):
        func = MagicMock(side_effect=[IOError("error"), "ok"])
        self.assertEqual(retry_call(func, retry_on=(IOError,)), "ok")
        self.assertEqual(func.call_count, 2)

        func = MagicMock(side_effect=ValueError("other error"))
        with self.assertRaises(ValueError):
            retry_call(func, retry_on=(IOError,))
        self.assertEqual(func.call_count, 1)

        func = MagicMock(side_effect=[IOError("error1"), IOError("error2"), IOError("error3")])
        with self.assertRaises(IOError) as ex:
            retry_call(func, retry_on=(IOError,), max_attempts=3)
        self.assertEqual(str(ex.exception), "error3")
        self.assertEqual(func.call_count, 3)
        self.assertEqual([c[0][0] for c in sleep.call_args_list], [1, 1, 2])

    def test_retry_call_overall_cap(self):
        func = MagicMock(side_effect=IOError("error"))
        start = time.monotonic()
        with self.assertRaises(IOError):
            retry_call(func, max_attempts=None, initial_delay=0.02, max_delay=0.1, overall_cap=0.2)
        self.assertLess(time.monotonic() - start, 1)
        self.assertLess(func.call_count, 11)

    def test_deadline(self):
        deadline = Deadline(10)
        self.assertFalse(deadline.expired())
        self.assertLessEqual(deadline.remaining(), 10)
        self.assertTrue(Deadline(0).expired())
        self.assertEqual(Deadline(0).remaining(), 0)


if __name__ == '__main__':
    unittest.main()
