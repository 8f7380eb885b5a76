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

import logging
import time

from CFD.exceptions import PollingExhausted

logger = logging.getLogger('AppDeployer')


class Deadline(object):
    """
    Wall clock budget shared by the steps of a long sequence of remote calls.

      ej: d = Deadline(360)
          while not d.expired():
            do_things(timeout=d.remaining())
    """

    def __init__(self, timeout):
        self.timeout = timeout
        self._start = time.monotonic()

    def elapsed(self):
        return time.monotonic() - self._start

    def remaining(self):
        return max(0.0, self.timeout - self.elapsed())

    def expired(self):
        return self.remaining() <= 0

    def __str__(self):
        return "deadline: %f, elapsed: %f" % (self.timeout, self.elapsed())


class Backoff(object):
    """
    Exponential delays: start at initial_delay, double on every step and
    never go above max_delay.
    """

    def __init__(self, initial_delay, max_delay):
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self._next = initial_delay

    def next_delay(self):
        delay = min(self._next, self.max_delay)
        self._next = min(self._next * 2, self.max_delay)
        return delay


def _sleep_within(delay, start, overall_cap):
    """
    Sleep the delay but never beyond the overall cap. Returns False if the
    cap has been reached.
    """
    remaining = overall_cap - (time.monotonic() - start)
    if remaining <= 0:
        return False
    time.sleep(min(delay, remaining))
    return True


def wait_until(poll, predicate, max_attempts=50, initial_delay=5, max_delay=60, overall_cap=600,
               description="remote state"):
    """
    Call poll until predicate(value) is True and return that value.

    Arguments:
       - poll(callable): function returning the current remote state.
       - predicate(callable): condition to be fulfilled by the polled value.
       - max_attempts(int): max number of calls to poll (None for no limit).
       - initial_delay(float): seconds to wait after the first failed check.
       - max_delay(float): limit of the exponential delay.
       - overall_cap(float): max elapsed seconds of the whole wait.
       - description(str): text used in log and error messages.

    Raises PollingExhausted if the attempts or the time are exhausted.
    """
    start = time.monotonic()
    backoff = Backoff(initial_delay, max_delay)
    attempt = 0
    while True:
        attempt += 1
        value = poll()
        if predicate(value):
            return value

        if max_attempts is not None and attempt >= max_attempts:
            break
        delay = backoff.next_delay()
        logger.debug("Waiting %s (attempt %d). Next check in %s seconds." % (description, attempt, delay))
        if not _sleep_within(delay, start, overall_cap):
            break

    elapsed = time.monotonic() - start
    raise PollingExhausted("Timeout waiting %s: %d attempts in %.1f seconds." % (description, attempt, elapsed),
                           attempt, elapsed)


def retry_call(func, retry_on=(Exception,), max_attempts=3, initial_delay=1, max_delay=60, overall_cap=None,
               description="remote call"):
    """
    Call func retrying it with exponential backoff while it raises some
    of the retry_on exceptions. Other exceptions are raised inmediately.
    When the attempts or the overall cap are exhausted the last error is raised.
    """
    start = time.monotonic()
    backoff = Backoff(initial_delay, max_delay)
    attempt = 0
    while True:
        attempt += 1
        try:
            return func()
        except retry_on as ex:
            if max_attempts is not None and attempt >= max_attempts:
                logger.debug("No more retries for %s after %d attempts." % (description, attempt))
                raise
            delay = backoff.next_delay()
            logger.debug("Error in %s (attempt %d): %s. Retrying in %s seconds." % (description, attempt, ex, delay))
            if overall_cap is not None and not _sleep_within(delay, start, overall_cap):
                raise
            elif overall_cap is None:
                time.sleep(delay)
