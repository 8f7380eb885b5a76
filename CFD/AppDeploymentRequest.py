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

import io
import os
from types import MappingProxyType
from urllib.parse import urlparse


class AppResource:
    """
    Artifact of an application: a local file with the bits (path or file:// url)
    or a docker image (docker://image:tag).
    """

    def __init__(self, uri=None, content=None):
        self.uri = uri
        """Location of the artifact"""
        self.content = content
        """Bytes of the artifact, if they are already in memory"""

    def is_docker(self):
        return bool(self.uri) and urlparse(self.uri).scheme == "docker"

    def get_image(self):
        """
        Get the docker image reference (without the protocol)
        """
        if not self.is_docker():
            return None
        url = urlparse(self.uri)
        return "%s%s" % (url[1], url[2])

    def get_path(self):
        if self.uri is None or self.is_docker():
            return None
        url = urlparse(self.uri)
        if url.scheme == "file":
            return url[2]
        return self.uri

    def get_input_stream(self):
        """
        Open the artifact bits. The caller must close the returned stream.
        """
        if self.content is not None:
            return io.BytesIO(self.content)
        path = self.get_path()
        if not path or not os.path.isfile(path):
            raise IOError("Application artifact not found: %s" % self.uri)
        return open(path, 'rb')

    def __str__(self):
        return self.uri or "<in memory artifact>"


class AppDefinition:
    """
    Name and application properties of the app to deploy
    """

    def __init__(self, name, properties=None):
        if not name:
            raise ValueError("The application name must not be empty")
        self._name = name
        self._properties = MappingProxyType(dict(properties or {}))

    @property
    def name(self):
        return self._name

    @property
    def properties(self):
        return self._properties


class AppDeploymentRequest:
    """
    Request to deploy an app or launch a task. It is never modified.
    """

    def __init__(self, definition, resource, deployment_properties=None, commandline_arguments=None):
        self._definition = definition
        self._resource = resource
        self._deployment_properties = MappingProxyType(dict(deployment_properties or {}))
        self._commandline_arguments = tuple(commandline_arguments or [])

    @property
    def definition(self):
        return self._definition

    @property
    def resource(self):
        return self._resource

    @property
    def deployment_properties(self):
        return self._deployment_properties

    @property
    def commandline_arguments(self):
        return self._commandline_arguments


class ScheduleRequest(AppDeploymentRequest):
    """
    Request to launch a task periodically following a cron expression
    """

    CRON_EXPRESSION_KEY = "scheduler.cron.expression"

    def __init__(self, definition, resource, schedule_name, scheduler_properties=None,
                 deployment_properties=None, commandline_arguments=None):
        AppDeploymentRequest.__init__(self, definition, resource, deployment_properties, commandline_arguments)
        self._schedule_name = schedule_name
        self._scheduler_properties = MappingProxyType(dict(scheduler_properties or {}))

    @property
    def schedule_name(self):
        return self._schedule_name

    @property
    def scheduler_properties(self):
        return self._scheduler_properties

    def get_cron_expression(self):
        return self._scheduler_properties.get(self.CRON_EXPRESSION_KEY)


class ScheduleInfo:
    """
    Information of a schedule registered in the scheduler service
    """

    def __init__(self, schedule_name=None, task_definition_name=None, schedule_properties=None):
        self.schedule_name = schedule_name
        """Name of the schedule (and of the job)"""
        self.task_definition_name = task_definition_name
        """Name of the task definition launched by the schedule"""
        self.schedule_properties = dict(schedule_properties or {})
        """Properties of the schedule (cron expression)"""

    def get_cron_expression(self):
        return self.schedule_properties.get(ScheduleRequest.CRON_EXPRESSION_KEY)

    def __repr__(self):
        return "ScheduleInfo(%s, %s, %s)" % (self.schedule_name, self.task_definition_name,
                                             self.get_cron_expression())
