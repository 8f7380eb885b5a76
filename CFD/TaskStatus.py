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

from enum import Enum

from CFD.exceptions import UnsupportedStateException


class LaunchState(Enum):
    launching = "launching"
    running = "running"
    cancelled = "cancelled"
    complete = "complete"
    failed = "failed"
    error = "error"
    unknown = "unknown"


TASK_STATE_MAP = {
    "SUCCEEDED": LaunchState.complete,
    "RUNNING": LaunchState.running,
    "PENDING": LaunchState.launching,
    "CANCELING": LaunchState.cancelled,
    "FAILED": LaunchState.failed,
}
"""Map of the Cloud Foundry task states to the launcher states."""


def map_task_state(value):
    if value not in TASK_STATE_MAP:
        raise UnsupportedStateException("CF task", value)
    return TASK_STATE_MAP[value]


class TaskStatus(object):

    def __init__(self, task_id, state, attributes=None):
        self.task_id = task_id
        self.state = state
        self.attributes = dict(attributes or {})

    def __str__(self):
        return "TaskStatus[%s : %s]" % (self.task_id, self.state.value)
