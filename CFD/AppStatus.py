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

from collections import OrderedDict
from enum import Enum

from CFD.exceptions import UnsupportedStateException


class DeploymentState(Enum):
    deploying = "deploying"
    deployed = "deployed"
    undeployed = "undeployed"
    partial = "partial"
    failed = "failed"
    error = "error"
    unknown = "unknown"


class InstanceState(Enum):
    """
    States reported by Cloud Foundry for an app instance
    """
    STARTING = "STARTING"
    DOWN = "DOWN"
    CRASHED = "CRASHED"
    FLAPPING = "FLAPPING"
    RUNNING = "RUNNING"
    UNKNOWN = "UNKNOWN"

    @staticmethod
    def from_remote(value):
        try:
            return InstanceState(value)
        except ValueError:
            raise UnsupportedStateException("CF instance", value)


INSTANCE_STATE_MAP = {
    InstanceState.STARTING: DeploymentState.deploying,
    InstanceState.DOWN: DeploymentState.deploying,
    InstanceState.CRASHED: DeploymentState.failed,
    # The platform reports FLAPPING for instances that are fine
    InstanceState.FLAPPING: DeploymentState.deployed,
    InstanceState.RUNNING: DeploymentState.deployed,
    InstanceState.UNKNOWN: DeploymentState.unknown,
}
"""Map of the Cloud Foundry instance states to the deployer states."""


def map_instance_state(value):
    """
    Get the deployer state of a remote instance state. No detail means failed.
    """
    if value is None:
        return DeploymentState.failed
    return INSTANCE_STATE_MAP[InstanceState.from_remote(value)]


class AppInstanceStatus(object):
    """
    Status of one instance of a deployed app.

    Arguments:
       - application_detail(dict): app info with keys id, name, urls, instances.
       - instance_detail(dict): instance info (state, cpu, memory_usage, memory_quota,
         disk_usage, disk_quota) or None if the instance is not observed yet.
       - index(int): index of the instance.
    """

    GUID = "guid"
    """The deployer assigned unique id for each app instance."""
    CF_GUID = "cf-guid"
    """The platform assigned guid, common among the instances of the app."""
    INDEX = "index"

    def __init__(self, application_detail, instance_detail, index):
        self.application_detail = application_detail
        self.instance_detail = instance_detail
        self.index = index

    @property
    def id(self):
        return "%s-%d" % (self.application_detail["name"], self.index)

    @property
    def state(self):
        if self.instance_detail is None:
            return DeploymentState.failed
        return map_instance_state(self.instance_detail.get("state"))

    @staticmethod
    def _percent(usage, quota):
        return "%.1f%%" % (100.0 * usage / quota)

    @property
    def attributes(self):
        attributes = {}
        detail = self.instance_detail
        if detail is not None:
            if detail.get("cpu") is not None:
                attributes["metrics.machine.cpu"] = "%.1f%%" % (detail["cpu"] * 100.0)
            if detail.get("disk_quota") and detail.get("disk_usage") is not None:
                attributes["metrics.machine.disk"] = self._percent(detail["disk_usage"], detail["disk_quota"])
            if detail.get("memory_quota") and detail.get("memory_usage") is not None:
                attributes["metrics.machine.memory"] = self._percent(detail["memory_usage"],
                                                                     detail["memory_quota"])

        urls = self.application_detail.get("urls") or []
        if urls:
            attributes["url"] = "http://%s" % urls[0]
            for i, url in enumerate(urls):
                attributes["url.%d" % i] = "http://%s" % url

        attributes[self.GUID] = "%s:%d" % (self.application_detail["name"], self.index)
        attributes[self.CF_GUID] = self.application_detail.get("id")
        attributes[self.INDEX] = str(self.index)
        return attributes

    def __str__(self):
        return "%s[%s : %s]" % (self.__class__.__name__, self.id, self.state.value)


class AppStatus(object):
    """
    Status of a deployment computed from the status of its instances
    """

    def __init__(self, deployment_id, general_state=None):
        self.deployment_id = deployment_id
        self.general_state = general_state
        self.instances = OrderedDict()

    def with_instance(self, instance):
        self.instances[instance.id] = instance
        return self

    @staticmethod
    def of(deployment_id, application_detail):
        """
        Build the status of an app creating one instance status for each expected
        instance. Instances without detail are considered failed.
        """
        app_status = AppStatus(deployment_id)
        details = application_detail.get("instance_details") or []
        by_index = dict((detail.get("index"), detail) for detail in details)
        expected = application_detail.get("instances")
        if expected is None:
            expected = len(details)
        for index in range(expected):
            detail = by_index.get(index)
            app_status.with_instance(AppInstanceStatus(application_detail, detail, index))
        return app_status

    @property
    def state(self):
        if self.general_state is not None:
            return self.general_state
        if not self.instances:
            return DeploymentState.unknown

        states = set(instance.state for instance in self.instances.values())
        if len(states) == 1:
            return states.pop()
        if DeploymentState.error in states:
            return DeploymentState.error
        if DeploymentState.deploying in states:
            return DeploymentState.deploying
        if DeploymentState.deployed in states or DeploymentState.partial in states:
            return DeploymentState.partial
        if DeploymentState.failed in states:
            return DeploymentState.failed
        return DeploymentState.partial

    def __str__(self):
        return "AppStatus[%s : %s]" % (self.deployment_id, self.state.value)
