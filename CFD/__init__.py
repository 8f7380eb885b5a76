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


__all__ = ['AppDeployer', 'AppDeploymentRequest', 'AppNameGenerator', 'AppScheduler', 'AppStatus',
           'BaseDeployer', 'config', 'DeploymentProperties', 'exceptions', 'LoggerMixin', 'Resource',
           'retry', 'TaskLauncher', 'TaskStatus']
__version__ = '1.0.0'


def get_ex_error(ex):
    """
    Return a secure string with the error of the exception
    """
    try:
        return "%s" % ex
    except Exception:
        error = getattr(ex, 'message', None)
        if not error:
            error = ex.args[0] if len(ex.args) else repr(ex)
        return error


def comma_delimited_list_to_set(value):
    """
    Returns a set with the stripped, non empty elements of a comma separated string
    """
    if not value:
        return set()
    if isinstance(value, (list, tuple, set)):
        return set(elem.strip() for elem in value if elem and elem.strip())
    return set(elem.strip() for elem in value.split(",") if elem.strip())
