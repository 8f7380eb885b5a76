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

import configparser
import os
import logging


def parse_options(config, section_name, config_class):
    options = config.options(section_name)
    for option in options:
        option = option.upper()
        if option in config_class.__dict__ and not option.startswith("__"):
            current = config_class.__dict__[option]
            if isinstance(current, bool):
                value = config.getboolean(section_name, option)
            elif isinstance(current, int):
                value = config.getint(section_name, option)
            elif isinstance(current, float):
                value = config.getfloat(section_name, option)
            elif isinstance(current, list):
                str_value = config.get(section_name, option)
                value = [elem.strip() for elem in str_value.split(',') if elem.strip()]
            else:
                value = config.get(section_name, option)
            setattr(config_class, option, value)
        else:
            logger = logging.getLogger('AppDeployer')
            logger.warning("Unknown option in the CFD config file. Ignoring it: " + option)


class Config:

    API_URL = "https://api.run.pivotal.io"
    UAA_URL = ""
    SCHEDULER_URL = ""
    ORG = ""
    SPACE = ""
    USERNAME = ""
    PASSWORD = ""
    TOKEN = ""
    VERIFY_SSL = True
    DEFAULT_MEMORY = "1024m"
    DEFAULT_DISK = "1024m"
    DEFAULT_BUILDPACK = "https://github.com/cloudfoundry/java-buildpack.git#v4.29.1"
    DEFAULT_SERVICES = []
    DEFAULT_INSTANCES = 1
    DEFAULT_HEALTH_CHECK = "port"
    DEFAULT_HEALTH_CHECK_ENDPOINT = ""
    DOMAIN = ""
    HOST = ""
    ROUTE_PATH = ""
    USE_SPRING_APPLICATION_JSON = True
    APP_NAME_PREFIX = ""
    ENABLE_RANDOM_APP_NAME_PREFIX = True
    # Budget in seconds for the whole push sequence of a deployment
    API_TIMEOUT = 360
    # Timeout in seconds of each HTTP request to the platform
    REQUEST_TIMEOUT = 60
    STATUS_TIMEOUT = 5.0
    STAGING_TIMEOUT = 900
    STARTUP_TIMEOUT = 300
    SCHEDULE_TIMEOUT = 30
    UNSCHEDULE_TIMEOUT = 30
    LIST_TIMEOUT = 60
    SCHEDULE_SSL_RETRY_COUNT = 5
    MAX_SIMULTANEOUS_DEPLOYMENTS = 4
    CFD_PATH = os.path.dirname(os.path.realpath(__file__))
    LOG_FILE = '/var/log/cfd/cfd.log'
    LOG_FILE_MAX_SIZE = 10485760
    LOG_LEVEL = "INFO"


def load_config(config_files=None):
    """
    Read the CFD config files and update the Config class
    """
    if config_files is None:
        config_files = [Config.CFD_PATH + '/../cfd.cfg', Config.CFD_PATH + '/../etc/cfd.cfg', '/etc/cfd/cfd.cfg']
    config = configparser.ConfigParser()
    config.read(config_files)

    section_name = "cfd"
    if config.has_section(section_name):
        parse_options(config, section_name, Config)
    return config


load_config()
