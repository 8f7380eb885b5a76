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

import re

from CFD.config import Config
from CFD.exceptions import InvalidPropertyException

# Generic deployment properties
COUNT_PROPERTY_KEY = "deployer.count"
GROUP_PROPERTY_KEY = "deployer.group"
MEMORY_PROPERTY_KEY = "deployer.memory"
DISK_PROPERTY_KEY = "deployer.disk"

# Cloud Foundry specific deployment properties
CF_PREFIX = "deployer.cloudfoundry."
BUILDPACK_PROPERTY_KEY = CF_PREFIX + "buildpack"
SERVICES_PROPERTY_KEY = CF_PREFIX + "services"
HEALTHCHECK_PROPERTY_KEY = CF_PREFIX + "health-check"
HEALTHCHECK_ENDPOINT_PROPERTY_KEY = CF_PREFIX + "health-check-http-endpoint"
HEALTHCHECK_TIMEOUT_PROPERTY_KEY = CF_PREFIX + "health-check-timeout"
ROUTE_PATH_PROPERTY = CF_PREFIX + "route-path"
ROUTES_PROPERTY = CF_PREFIX + "routes"
NO_ROUTE_PROPERTY = CF_PREFIX + "no-route"
HOST_PROPERTY = CF_PREFIX + "host"
DOMAIN_PROPERTY = CF_PREFIX + "domain"
USE_SPRING_APPLICATION_JSON_KEY = CF_PREFIX + "use-spring-application-json"

HEALTH_CHECK_TYPES = ["port", "process", "http", "none"]

SIZE_RE = re.compile(r"^\s*(\d+)\s*([mMgG]?)\s*$")


def parse_to_mebibytes(value, key=MEMORY_PROPERTY_KEY):
    """
    Convert a size like 512, 512m or 2g to the number of mebibytes
    """
    match = SIZE_RE.match(str(value))
    if not match:
        raise InvalidPropertyException(key, value, "Use a number followed by an optional unit: m or g.")
    size = int(match.group(1))
    if match.group(2).lower() == "g":
        size *= 1024
    return size


def parse_bool(value, key):
    if isinstance(value, bool):
        return value
    if str(value).strip().lower() in ["true", "yes", "1"]:
        return True
    if str(value).strip().lower() in ["false", "no", "0"]:
        return False
    raise InvalidPropertyException(key, value, "Use true or false.")


class DeploymentProperties:
    """
    Default deployment properties of the process. They are read from the Config
    on creation and not changed later.
    """

    def __init__(self):
        self.memory = Config.DEFAULT_MEMORY
        """Default memory of the app instances"""
        self.disk = Config.DEFAULT_DISK
        """Default disk of the app instances"""
        self.buildpack = Config.DEFAULT_BUILDPACK
        """Buildpack used to stage the apps"""
        self.services = set(Config.DEFAULT_SERVICES)
        """Services bound to all the apps"""
        self.instances = Config.DEFAULT_INSTANCES
        """Default number of instances"""
        self.health_check = Config.DEFAULT_HEALTH_CHECK
        """Default health check type"""
        self.health_check_endpoint = Config.DEFAULT_HEALTH_CHECK_ENDPOINT
        """Default http health check endpoint"""
        self.domain = Config.DOMAIN
        self.host = Config.HOST
        self.route_path = Config.ROUTE_PATH
        self.use_spring_application_json = Config.USE_SPRING_APPLICATION_JSON
        """Pass the app properties in a single SPRING_APPLICATION_JSON env variable"""
        self.app_name_prefix = Config.APP_NAME_PREFIX
        self.enable_random_app_name_prefix = Config.ENABLE_RANDOM_APP_NAME_PREFIX
        self.org = Config.ORG
        self.space = Config.SPACE
        self.api_timeout = Config.API_TIMEOUT
        self.status_timeout = Config.STATUS_TIMEOUT
        self.staging_timeout = Config.STAGING_TIMEOUT
        self.startup_timeout = Config.STARTUP_TIMEOUT
        self.schedule_timeout = Config.SCHEDULE_TIMEOUT
        self.unschedule_timeout = Config.UNSCHEDULE_TIMEOUT
        self.list_timeout = Config.LIST_TIMEOUT
        self.schedule_ssl_retry_count = Config.SCHEDULE_SSL_RETRY_COUNT

    def get(self, request, key, default):
        """
        Get the value of the deployment property of the request or the default one
        """
        value = request.deployment_properties.get(key)
        if value is None or value == "":
            return default
        return value
