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
from CFD.Resource import (State, iterate_pages, ApplicationDriver, PackageDriver, BuildDriver, JobDriver,
                          OperationDriver, ServiceBindingDriver, TaskDriver)
from CFD.exceptions import CloudFoundryException, PollingExhausted, ResourceNotFound, UnsupportedStateException
from mock import patch, MagicMock


class TestResource(unittest.TestCase):
    """
    Class to test the drivers of the remote resources
    """

    def test_iterate_pages(self):
        pages = {1: {"resources": [1, 2], "pagination": {"total_pages": 3}},
                 2: {"resources": [3], "pagination": {"total_pages": 3}},
                 3: {"resources": [], "pagination": {"total_pages": 3}}}
        fetch_page = MagicMock(side_effect=lambda page: pages[page])
        self.assertEqual(list(iterate_pages(fetch_page)), [1, 2, 3])
        self.assertEqual([c[0][0] for c in fetch_page.call_args_list], [1, 2, 3])

        fetch_page = MagicMock(return_value={"resources": [1]})
        self.assertEqual(list(iterate_pages(fetch_page)), [1])
        self.assertEqual(fetch_page.call_count, 1)

    def test_get_not_found(self):
        client = MagicMock()
        driver = PackageDriver(client)
        client.get_package.side_effect = CloudFoundryException(404, "not found")
        with self.assertRaises(ResourceNotFound):
            driver.get("pkg")

        client.get_package.side_effect = CloudFoundryException(500, "server error")
        with self.assertRaises(CloudFoundryException) as ex:
            driver.get("pkg")
        self.assertEqual(ex.exception.status_code, 500)

        client.list_applications.return_value = {"resources": []}
        with self.assertRaises(ResourceNotFound):
            ApplicationDriver(client).get("app", space_id="space")
        self.assertFalse(ApplicationDriver(client).exists("app", "space"))

    def test_unsupported_state(self):
        client = MagicMock()
        client.get_task.return_value = {"guid": "task", "state": "WAITING"}
        with self.assertRaises(UnsupportedStateException):
            TaskDriver(client).get("task")

    def test_list(self):
        client = MagicMock()
        pages = {1: {"resources": [{"guid": "a1", "name": "app1", "state": "STARTED"}],
                     "pagination": {"total_pages": 2}},
                 2: {"resources": [{"guid": "a2", "name": "app2", "state": "STOPPED"}],
                     "pagination": {"total_pages": 2}}}
        client.list_applications.side_effect = lambda space_id, page: pages[page]
        apps = ApplicationDriver(client).list(space_id="space")
        self.assertEqual([(a.id, a.state) for a in apps], [("a1", State.RUNNING), ("a2", State.READY)])

    @patch('CFD.retry.time.sleep')
    def test_wait_package_ready(self, sleep):
        client = MagicMock()
        client.get_package.side_effect = [{"guid": "pkg", "state": "PROCESSING_UPLOAD"},
                                          {"guid": "pkg", "state": "READY"}]
        driver = PackageDriver(client)
        handle = driver.wait_ready(driver.to_handle({"guid": "pkg", "state": "AWAITING_UPLOAD"}))
        self.assertEqual(handle.state, State.READY)
        self.assertEqual(sleep.call_args_list[0][0][0], 5)

    @patch('CFD.retry.time.sleep')
    def test_wait_droplet_staged(self, sleep):
        client = MagicMock()
        client.get_build.side_effect = [{"guid": "build", "state": "STAGING"},
                                        {"guid": "build", "state": "FAILED", "error": "no buildpack"}]
        driver = BuildDriver(client)
        handle = driver.wait_ready(driver.to_handle({"guid": "build", "state": "STAGING"}))
        self.assertEqual(handle.state, State.FAILED)
        self.assertEqual(sleep.call_args_list[0][0][0], 10)

        client.get_build.side_effect = None
        client.get_build.return_value = {"guid": "build", "state": "STAGING"}
        with self.assertRaises(PollingExhausted):
            driver.wait_ready(handle, max_attempts=3)
        self.assertEqual(client.get_build.call_count, 5)

        client.get_build.return_value = {"guid": "build", "state": "STAGED", "droplet": {"guid": "droplet"}}
        handle = driver.wait_ready(handle)
        self.assertEqual(driver.droplet_id(handle), "droplet")

    def test_delete(self):
        client = MagicMock()
        ApplicationDriver(client).delete("app-guid")
        client.delete_application.assert_called_once_with("app-guid", True)

        client.delete_job.side_effect = CloudFoundryException(404, "not found")
        with self.assertRaises(ResourceNotFound):
            JobDriver(client).delete("job", timeout=10)
        client.delete_job.assert_called_once_with("job", 10)

    def test_job_find(self):
        client = MagicMock()
        pages = {1: {"resources": [{"guid": "j1", "name": "other"}], "pagination": {"total_pages": 2}},
                 2: {"resources": [{"guid": "j2", "name": "sched"}], "pagination": {"total_pages": 2}}}
        client.list_jobs.side_effect = lambda space_id, page, detailed, timeout: pages[page]
        driver = JobDriver(client)
        job = driver.find("sched", "space")
        self.assertEqual(job.id, "j2")
        self.assertEqual(job.state, State.READY)
        self.assertIsNone(driver.find("missing", "space"))

    def test_operation(self):
        client = MagicMock()
        client.get_platform_job.return_value = {"guid": "op", "state": "FAILED",
                                                "errors": [{"detail": "invalid manifest"}]}
        driver = OperationDriver(client)
        handle = driver.wait_ready(driver.get("op"))
        self.assertEqual(handle.state, State.FAILED)
        self.assertEqual(driver.errors(handle), "invalid manifest")

    def test_service_bindings(self):
        client = MagicMock()
        client.list_service_instances.return_value = {"resources": [{"guid": "db-guid", "name": "db"}]}
        client.list_service_bindings.return_value = {
            "resources": [{"guid": "b1", "last_operation": {"state": "succeeded"},
                           "relationships": {"service_instance": {"data": {"guid": "db-guid"}}}}]}
        driver = ServiceBindingDriver(client)
        self.assertEqual(driver.service_instances("space"), {"db": "db-guid"})
        bindings = driver.list(app_id="app")
        self.assertEqual(bindings[0].state, State.READY)
        self.assertEqual(driver.service_instance_id(bindings[0]), "db-guid")


if __name__ == '__main__':
    unittest.main()
