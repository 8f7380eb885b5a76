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
from enum import Enum

from CFD.LoggerMixin import LoggerMixin
from CFD.exceptions import CloudFoundryException, ResourceNotFound, UnsupportedStateException
from CFD.retry import wait_until


class State(Enum):
    """
    Locally observed state of a remote resource
    """
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    READY = "READY"
    STAGED = "STAGED"
    RUNNING = "RUNNING"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    UNKNOWN = "UNKNOWN"


class ResourceHandle:
    """
    Reference to a remote resource with the state read in the last successful call.
    The state is never modified locally, a new handle is returned on every read.
    """

    def __init__(self, kind, resource_id, state, raw_state=None, data=None):
        self.kind = kind
        self.id = resource_id
        self.state = state
        self.raw_state = raw_state
        """State as returned by the platform"""
        self.data = data or {}
        """Full payload returned by the platform"""

    def __str__(self):
        return "%s %s (%s)" % (self.kind, self.id, self.state.value)


def iterate_pages(fetch_page):
    """
    Yield all the resources of a paginated listing.
    fetch_page(page) must return a dict with a "resources" list and a
    "pagination" dict with the "total_pages". Pages start at 1.
    """
    page = 1
    while True:
        result = fetch_page(page)
        for resource in result.get("resources") or []:
            yield resource
        total_pages = (result.get("pagination") or {}).get("total_pages") or 1
        if page >= total_pages:
            break
        page += 1


class ResourceDriver(LoggerMixin):
    """
    Base class of the drivers of the lifecycle of a kind of remote resource.
    Subclasses define the kind, the map of remote states and the calls to the client.
    """

    kind = "resource"
    STATE_MAP = {}
    """Map of the remote states to the local ones. Unlisted states are an error."""
    WAIT_DEFAULTS = {"max_attempts": 50, "initial_delay": 5, "max_delay": 60, "overall_cap": 600}
    """Default polling policy of wait_ready"""

    def __init__(self, client, logger=None):
        self.client = client
        self.logger = logger or logging.getLogger('AppDeployer')

    def map_state(self, raw_state):
        if raw_state not in self.STATE_MAP:
            raise UnsupportedStateException(self.kind, raw_state)
        return self.STATE_MAP[raw_state]

    def to_handle(self, data):
        raw_state = data.get("state")
        return ResourceHandle(self.kind, data.get("guid"), self.map_state(raw_state), raw_state, data)

    def _fetch(self, resource_id, **kwargs):
        raise NotImplementedError("Should have implemented this")

    def _fetch_page(self, page, **filters):
        raise NotImplementedError("Should have implemented this")

    def _remove(self, resource_id, **kwargs):
        raise NotImplementedError("Should have implemented this")

    def _not_found(self, ex, resource_id):
        if isinstance(ex, CloudFoundryException) and ex.status_code == 404:
            return ResourceNotFound(self.kind, resource_id)
        return ex

    def get(self, resource_id, **kwargs):
        """
        Read the resource. Raises ResourceNotFound if it does not exist.
        """
        try:
            data = self._fetch(resource_id, **kwargs)
        except CloudFoundryException as ex:
            raise self._not_found(ex, resource_id)
        return self.to_handle(data)

    def list(self, **filters):
        """
        Get the handles of all the resources, draining all the pages.
        """
        return [self.to_handle(data) for data in iterate_pages(lambda page: self._fetch_page(page, **filters))]

    def delete(self, resource_id, **kwargs):
        self.log_debug("Deleting %s %s." % (self.kind, resource_id))
        try:
            self._remove(resource_id, **kwargs)
        except CloudFoundryException as ex:
            raise self._not_found(ex, resource_id)

    def is_ready(self, handle):
        return handle.state == State.READY

    def wait_ready(self, handle, predicate=None, **overrides):
        """
        Poll the resource until the predicate is fulfilled (by default it is READY).
        The polling policy of the kind can be changed with the overrides:
        max_attempts, initial_delay, max_delay and overall_cap.
        Returns the last read handle or raises PollingExhausted.
        """
        options = dict(self.WAIT_DEFAULTS)
        options.update(overrides)
        return wait_until(lambda: self.get(handle.id), predicate or self.is_ready,
                          description="%s %s" % (self.kind, handle.id), **options)


class ApplicationDriver(ResourceDriver):
    """
    Applications are identified by name within a space
    """

    kind = "application"
    STATE_MAP = {
        "STARTED": State.RUNNING,
        "STOPPED": State.READY,
    }

    def _fetch(self, name, space_id=None):
        apps = self.client.list_applications(name=name, space_id=space_id).get("resources") or []
        if not apps:
            raise ResourceNotFound(self.kind, name)
        return apps[0]

    def _fetch_page(self, page, space_id=None):
        return self.client.list_applications(space_id=space_id, page=page)

    def _remove(self, app_id, delete_routes=True):
        self.client.delete_application(app_id, delete_routes)

    def create(self, name, space_id, buildpack=None, docker=False):
        self.log_info("Creating application.", name)
        return self.to_handle(self.client.create_application(name, space_id, buildpack, docker))

    def exists(self, name, space_id=None):
        try:
            self.get(name, space_id=space_id)
            return True
        except ResourceNotFound:
            return False

    def get_detail(self, name, space_id=None, timeout=None):
        """
        Get the application detail with the stats of the instances
        """
        try:
            return self.client.get_application(name, space_id, timeout=timeout)
        except CloudFoundryException as ex:
            raise self._not_found(ex, name)

    def droplets(self, app_id):
        return DropletDriver(self.client, self.logger).list(app_id=app_id)

    def environment(self, app_id):
        return self.client.get_application_environment(app_id)

    def set_environment(self, app_id, env):
        return self.client.update_application_environment(app_id, env)

    def set_current_droplet(self, app_id, droplet_id):
        self.log_debug("Setting current droplet %s." % droplet_id, app_id)
        self.client.set_current_droplet(app_id, droplet_id)

    def start(self, app_id):
        return self.to_handle(self.client.start_application(app_id))


class PackageDriver(ResourceDriver):

    kind = "package"
    STATE_MAP = {
        "AWAITING_UPLOAD": State.PENDING,
        "PROCESSING_UPLOAD": State.PROCESSING,
        "COPYING": State.PROCESSING,
        "READY": State.READY,
        "FAILED": State.FAILED,
        "EXPIRED": State.FAILED,
    }

    def _fetch(self, package_id):
        return self.client.get_package(package_id)

    def create(self, app_id, image=None):
        """
        Create a bits package or a docker one if the image is set
        """
        return self.to_handle(self.client.create_package(app_id, image))

    def upload(self, handle, bits, timeout=None):
        self.log_debug("Uploading bits of package %s." % handle.id)
        return self.to_handle(self.client.upload_package(handle.id, bits, timeout))


class BuildDriver(ResourceDriver):
    """
    Staging of a package into a droplet. The droplet is PENDING until the
    staging finishes and then it is STAGED or FAILED.
    """

    kind = "droplet"
    STATE_MAP = {
        "STAGING": State.PENDING,
        "STAGED": State.STAGED,
        "FAILED": State.FAILED,
    }
    WAIT_DEFAULTS = {"max_attempts": 50, "initial_delay": 10, "max_delay": 60, "overall_cap": 600}

    def _fetch(self, build_id):
        return self.client.get_build(build_id)

    def is_ready(self, handle):
        return handle.state != State.PENDING

    def create(self, package_id, disk_mb=None, memory_mb=None):
        return self.to_handle(self.client.stage_package(package_id, disk_mb, memory_mb))

    @staticmethod
    def droplet_id(handle):
        droplet = handle.data.get("droplet") or {}
        return droplet.get("guid")


class DropletDriver(ResourceDriver):

    kind = "droplet"
    STATE_MAP = {
        "AWAITING_UPLOAD": State.PENDING,
        "PROCESSING_UPLOAD": State.PROCESSING,
        "COPYING": State.PROCESSING,
        "STAGED": State.STAGED,
        "FAILED": State.FAILED,
        "EXPIRED": State.FAILED,
    }

    def _fetch(self, droplet_id):
        return self.client.get_droplet(droplet_id)

    def _fetch_page(self, page, app_id=None):
        return self.client.list_application_droplets(app_id, page)


class TaskDriver(ResourceDriver):

    kind = "task"
    STATE_MAP = {
        "PENDING": State.PENDING,
        "RUNNING": State.RUNNING,
        "SUCCEEDED": State.READY,
        "CANCELING": State.CANCELLED,
        "FAILED": State.FAILED,
    }

    def _fetch(self, task_id):
        return self.client.get_task(task_id)

    def create(self, app_id, droplet_id, name, command):
        return self.to_handle(self.client.create_task(app_id, droplet_id, name, command))

    def cancel(self, task_id):
        try:
            return self.to_handle(self.client.cancel_task(task_id))
        except CloudFoundryException as ex:
            raise self._not_found(ex, task_id)


class JobDriver(ResourceDriver):
    """
    Jobs of the scheduler service. They have no state: a read job is READY.
    """

    kind = "job"

    def to_handle(self, data):
        return ResourceHandle(self.kind, data.get("guid"), State.READY, None, data)

    def _fetch_page(self, page, space_id=None, detailed=False, timeout=None):
        return self.client.list_jobs(space_id, page, detailed, timeout)

    def _remove(self, job_id, timeout=None):
        self.client.delete_job(job_id, timeout)

    def create(self, app_id, name, command, timeout=None):
        return self.to_handle(self.client.create_job(app_id, name, command, timeout))

    def schedule(self, handle, expression, timeout=None):
        return self.client.schedule_job(handle.id, expression, timeout)

    def find(self, name, space_id, timeout=None):
        """
        Get the job with the name scanning all the pages. None if it does not exist.
        """
        for data in iterate_pages(lambda page: self.client.list_jobs(space_id, page, False, timeout)):
            if data.get("name") == name:
                return self.to_handle(data)
        return None


class ServiceBindingDriver(ResourceDriver):

    kind = "service binding"
    STATE_MAP = {
        "initial": State.PENDING,
        "in progress": State.PROCESSING,
        "succeeded": State.READY,
        "failed": State.FAILED,
        None: State.UNKNOWN,
    }

    def to_handle(self, data):
        raw_state = (data.get("last_operation") or {}).get("state")
        return ResourceHandle(self.kind, data.get("guid"), self.map_state(raw_state), raw_state, data)

    def _fetch_page(self, page, app_id=None):
        return self.client.list_service_bindings(app_id, page)

    def _remove(self, binding_id):
        self.client.delete_service_binding(binding_id)

    def create(self, app_id, service_instance_id):
        self.log_debug("Binding service instance %s." % service_instance_id, app_id)
        return self.to_handle(self.client.create_service_binding(app_id, service_instance_id))

    @staticmethod
    def service_instance_id(handle):
        relationships = handle.data.get("relationships") or {}
        return ((relationships.get("service_instance") or {}).get("data") or {}).get("guid")

    def service_instances(self, space_id):
        """
        Get a dict with the ids of the service instances of the space by name
        """
        instances = {}
        for data in iterate_pages(lambda page: self.client.list_service_instances(space_id, page)):
            instances[data["name"]] = data["guid"]
        return instances


class OperationDriver(ResourceDriver):
    """
    Asynchronous operations of the platform, like the application of a manifest
    """

    kind = "operation"
    STATE_MAP = {
        "PROCESSING": State.PROCESSING,
        "POLLING": State.PROCESSING,
        "COMPLETE": State.READY,
        "FAILED": State.FAILED,
    }
    WAIT_DEFAULTS = {"max_attempts": None, "initial_delay": 1, "max_delay": 10, "overall_cap": 600}

    def _fetch(self, job_id):
        return self.client.get_platform_job(job_id)

    def is_ready(self, handle):
        return handle.state != State.PROCESSING

    @staticmethod
    def errors(handle):
        return "; ".join(error.get("detail", "") for error in handle.data.get("errors") or [])
