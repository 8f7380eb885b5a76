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

import json
import logging
from concurrent.futures import ThreadPoolExecutor

from CFD import comma_delimited_list_to_set
from CFD.config import Config
from CFD.LoggerMixin import LoggerMixin
from CFD.DeploymentProperties import (DeploymentProperties, parse_to_mebibytes, parse_bool, COUNT_PROPERTY_KEY,
                                      GROUP_PROPERTY_KEY, MEMORY_PROPERTY_KEY, DISK_PROPERTY_KEY,
                                      BUILDPACK_PROPERTY_KEY, SERVICES_PROPERTY_KEY, HEALTHCHECK_PROPERTY_KEY,
                                      HEALTH_CHECK_TYPES, USE_SPRING_APPLICATION_JSON_KEY)
from CFD.exceptions import CloudFoundryException, InvalidPropertyException, ResourceNotFound
from CFD.Resource import (ApplicationDriver, PackageDriver, BuildDriver, DropletDriver, TaskDriver,
                          ServiceBindingDriver, iterate_pages)


class BaseDeployer(LoggerMixin):
    """
    Common functions of the app deployer and the task launcher: resolution of the
    deployment properties, app environment and the space of the platform.
    """

    SPRING_APPLICATION_JSON = "SPRING_APPLICATION_JSON"
    JAVA_MAIN_ARGS = "JBP_CONFIG_JAVA_MAIN"
    GROUP_ENV = "SPRING_CLOUD_APPLICATION_GROUP"
    GUID_ENV = "SPRING_CLOUD_APPLICATION_GUID"
    INDEX_ENV = "SPRING_APPLICATION_INDEX"
    # Expanded by the platform in every instance
    GUID_PLACEHOLDER = "${vcap.application.name}:${vcap.application.instance_index}"
    INDEX_PLACEHOLDER = "${vcap.application.instance_index}"

    def __init__(self, client, deployment_properties=None, logger_name='AppDeployer', max_workers=None):
        self.client = client
        self.deployment_properties = deployment_properties or DeploymentProperties()
        self.logger = logging.getLogger(logger_name)
        """Logger object."""
        self.executor = ThreadPoolExecutor(max_workers=max_workers or Config.MAX_SIMULTANEOUS_DEPLOYMENTS)
        """Pool of the threads that run the asynchronous operations"""
        self._space_ids = {}

        self.applications = ApplicationDriver(client, self.logger)
        self.packages = PackageDriver(client, self.logger)
        self.builds = BuildDriver(client, self.logger)
        self.droplets = DropletDriver(client, self.logger)
        self.tasks = TaskDriver(client, self.logger)
        self.bindings = ServiceBindingDriver(client, self.logger)

    def shutdown(self, wait=True):
        self.executor.shutdown(wait)

    def get_space_id(self):
        """
        Get the id of the configured org and space. It is cached once obtained.
        """
        org = self.deployment_properties.org
        space = self.deployment_properties.space
        if (org, space) not in self._space_ids:
            org_id = None
            if org:
                orgs = self.client.list_organizations(name=org).get("resources") or []
                if not orgs:
                    raise ResourceNotFound("organization", org)
                org_id = orgs[0]["guid"]
            spaces = [s for s in iterate_pages(lambda page: self.client.list_spaces(space or None, org_id, page))]
            if not spaces:
                raise ResourceNotFound("space", space)
            self._space_ids[(org, space)] = spaces[0]["guid"]
        return self._space_ids[(org, space)]

    @staticmethod
    def is_not_found(ex):
        return isinstance(ex, ResourceNotFound) or (isinstance(ex, CloudFoundryException) and
                                                    ex.status_code == 404)

    def memory(self, request):
        value = self.deployment_properties.get(request, MEMORY_PROPERTY_KEY, self.deployment_properties.memory)
        return parse_to_mebibytes(value, MEMORY_PROPERTY_KEY)

    def disk_quota(self, request):
        value = self.deployment_properties.get(request, DISK_PROPERTY_KEY, self.deployment_properties.disk)
        return parse_to_mebibytes(value, DISK_PROPERTY_KEY)

    def buildpack(self, request):
        return self.deployment_properties.get(request, BUILDPACK_PROPERTY_KEY, self.deployment_properties.buildpack)

    def instances(self, request):
        value = self.deployment_properties.get(request, COUNT_PROPERTY_KEY, self.deployment_properties.instances)
        try:
            instances = int(value)
        except ValueError:
            raise InvalidPropertyException(COUNT_PROPERTY_KEY, value, "It must be an integer.")
        if instances < 0:
            raise InvalidPropertyException(COUNT_PROPERTY_KEY, value, "It must not be negative.")
        return instances

    def health_check(self, request):
        value = self.deployment_properties.get(request, HEALTHCHECK_PROPERTY_KEY,
                                               self.deployment_properties.health_check)
        if value not in HEALTH_CHECK_TYPES:
            raise InvalidPropertyException(HEALTHCHECK_PROPERTY_KEY, value,
                                           "Valid values: %s." % ", ".join(HEALTH_CHECK_TYPES))
        return value

    def services_to_bind(self, request):
        """
        Services of the defaults plus the ones of the request
        """
        services = set(self.deployment_properties.services)
        services.update(comma_delimited_list_to_set(request.deployment_properties.get(SERVICES_PROPERTY_KEY)))
        return services

    def use_spring_application_json(self, request):
        value = self.deployment_properties.get(request, USE_SPRING_APPLICATION_JSON_KEY,
                                               self.deployment_properties.use_spring_application_json)
        return parse_bool(value, USE_SPRING_APPLICATION_JSON_KEY)

    def get_environment_variables(self, request, app_id=None):
        """
        Build the environment of the app from the app properties, the command
        line arguments and the group of the request
        """
        env = {}
        properties = dict(request.definition.properties)
        if self.use_spring_application_json(request):
            if properties:
                env[self.SPRING_APPLICATION_JSON] = json.dumps(properties)
        else:
            if "server.port" in properties:
                self.log_warn("Ignoring the property server.port. The port is assigned by the platform.", app_id)
                del properties["server.port"]
            for key, value in properties.items():
                env[key] = str(value)

        if request.commandline_arguments:
            if request.resource.is_docker():
                self.log_warn("Command line arguments are not passed to docker images.", app_id)
            else:
                env[self.JAVA_MAIN_ARGS] = '{ arguments: "%s" }' % " ".join(request.commandline_arguments)

        group = request.deployment_properties.get(GROUP_PROPERTY_KEY)
        if group:
            env[self.GROUP_ENV] = group
        env[self.GUID_ENV] = self.GUID_PLACEHOLDER
        env[self.INDEX_ENV] = self.INDEX_PLACEHOLDER
        return env
