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


class LoggerMixin(object):
    """
    Class add App ID in all log messages
    """

    def log_msg(self, level, msg, app_id=None, exc_info=0):
        if app_id:
            msg = "App ID: %s: %s" % (app_id, msg)
        self.logger.log(level, msg, exc_info=exc_info)

    def log_error(self, msg, app_id=None):
        self.log_msg(logging.ERROR, msg, app_id)

    def log_debug(self, msg, app_id=None):
        self.log_msg(logging.DEBUG, msg, app_id)

    def log_warn(self, msg, app_id=None):
        self.log_msg(logging.WARNING, msg, app_id)

    def log_exception(self, msg, app_id=None):
        self.log_msg(logging.ERROR, msg, app_id, exc_info=1)

    def log_info(self, msg, app_id=None):
        self.log_msg(logging.INFO, msg, app_id)
