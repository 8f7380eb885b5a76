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
import unittest

sys.path.append(".")
sys.path.append("..")
from CFD.AppStatus import AppStatus, AppInstanceStatus, DeploymentState, map_instance_state
from CFD.TaskStatus import LaunchState, map_task_state
from CFD.exceptions import UnsupportedStateException


def get_detail(states, instances=None):
    details = []
    for i, state in enumerate(states):
        details.append({"index": i, "state": state, "cpu": 0.5, "memory_usage": 512, "memory_quota": 1024,
                        "disk_usage": 256, "disk_quota": 1024})
    return {"id": "app-guid", "name": "app", "urls": ["app.example.com", "app2.example.com"],
            "instances": len(states) if instances is None else instances,
            "instance_details": details}


class TestAppStatus(unittest.TestCase):
    """
    Class to test the AppStatus and TaskStatus classes
    """

    def test_instance_state_map(self):
        self.assertEqual(map_instance_state("STARTING"), DeploymentState.deploying)
        self.assertEqual(map_instance_state("DOWN"), DeploymentState.deploying)
        self.assertEqual(map_instance_state("CRASHED"), DeploymentState.failed)
        self.assertEqual(map_instance_state("FLAPPING"), DeploymentState.deployed)
        self.assertEqual(map_instance_state("RUNNING"), DeploymentState.deployed)
        self.assertEqual(map_instance_state("UNKNOWN"), DeploymentState.unknown)
        self.assertEqual(map_instance_state(None), DeploymentState.failed)
        with self.assertRaises(UnsupportedStateException):
            map_instance_state("SLEEPING")

    def test_unsupported_state_on_read(self):
        status = AppStatus.of("app", get_detail(["SLEEPING"]))
        instance = list(status.instances.values())[0]
        with self.assertRaises(UnsupportedStateException):
            instance.state

    def test_of_expected_instances(self):
        status = AppStatus.of("app", get_detail(["RUNNING", "RUNNING"], instances=3))
        self.assertEqual(len(status.instances), 3)
        self.assertEqual(list(status.instances.keys()), ["app-0", "app-1", "app-2"])
        states = [i.state for i in status.instances.values()]
        self.assertEqual(states, [DeploymentState.deployed, DeploymentState.deployed, DeploymentState.failed])
        self.assertEqual(status.state, DeploymentState.partial)

        guids = set(i.attributes["cf-guid"] for i in status.instances.values())
        self.assertEqual(guids, set(["app-guid"]))

    def test_of_sorts_by_index(self):
        detail = get_detail(["RUNNING", "CRASHED"])
        detail["instance_details"].reverse()
        status = AppStatus.of("app", detail)
        instance = status.instances["app-1"]
        self.assertEqual(instance.state, DeploymentState.failed)

    def test_of_index_gap(self):
        detail = get_detail(["RUNNING", "CRASHED"], instances=3)
        detail["instance_details"][1]["index"] = 2
        status = AppStatus.of("app", detail)
        self.assertEqual(list(status.instances.keys()), ["app-0", "app-1", "app-2"])
        self.assertIsNone(status.instances["app-1"].instance_detail)
        self.assertEqual(status.instances["app-1"].state, DeploymentState.failed)
        self.assertEqual(status.instances["app-2"].instance_detail["state"], "CRASHED")
        self.assertEqual(status.instances["app-0"].state, DeploymentState.deployed)

    def test_attributes(self):
        instance = AppInstanceStatus(get_detail(["RUNNING"]), get_detail(["RUNNING"])["instance_details"][0], 0)
        attributes = instance.attributes
        self.assertEqual(attributes["metrics.machine.cpu"], "50.0%")
        self.assertEqual(attributes["metrics.machine.memory"], "50.0%")
        self.assertEqual(attributes["metrics.machine.disk"], "25.0%")
        self.assertEqual(attributes["url"], "http://app.example.com")
        self.assertEqual(attributes["url.1"], "http://app2.example.com")
        self.assertEqual(attributes["guid"], "app:0")
        self.assertEqual(attributes["cf-guid"], "app-guid")
        self.assertEqual(attributes["index"], "0")
        self.assertEqual(str(instance), "AppInstanceStatus[app-0 : deployed]")

    def test_aggregate_state(self):
        self.assertEqual(AppStatus("app").state, DeploymentState.unknown)
        self.assertEqual(AppStatus("app", DeploymentState.error).state, DeploymentState.error)
        self.assertEqual(AppStatus.of("app", get_detail(["RUNNING", "FLAPPING"])).state, DeploymentState.deployed)
        self.assertEqual(AppStatus.of("app", get_detail(["CRASHED", "CRASHED"])).state, DeploymentState.failed)
        self.assertEqual(AppStatus.of("app", get_detail(["RUNNING", "STARTING"])).state, DeploymentState.deploying)
        self.assertEqual(AppStatus.of("app", get_detail(["RUNNING", "CRASHED"])).state, DeploymentState.partial)
        self.assertEqual(AppStatus.of("app", get_detail(["CRASHED", "UNKNOWN"])).state, DeploymentState.failed)
        self.assertEqual(AppStatus.of("app", get_detail(["UNKNOWN", "UNKNOWN"])).state, DeploymentState.unknown)

    def test_task_state_map(self):
        self.assertEqual(map_task_state("SUCCEEDED"), LaunchState.complete)
        self.assertEqual(map_task_state("RUNNING"), LaunchState.running)
        self.assertEqual(map_task_state("PENDING"), LaunchState.launching)
        self.assertEqual(map_task_state("CANCELING"), LaunchState.cancelled)
        self.assertEqual(map_task_state("FAILED"), LaunchState.failed)
        with self.assertRaises(UnsupportedStateException):
            map_task_state("WAITING")


if __name__ == '__main__':
    unittest.main()
