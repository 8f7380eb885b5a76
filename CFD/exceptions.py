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


class DeployerException(Exception):
    def __init__(self, message):
        super().__init__(message)


class CloudFoundryException(DeployerException):
    """ Error returned by the Cloud Foundry API or the scheduler service """
    def __init__(self, status_code, message):
        self.status_code = status_code
        super().__init__("Error code %s: %s" % (status_code, message))


class ResourceNotFound(DeployerException):
    def __init__(self, kind, resource_id):
        self.kind = kind
        self.resource_id = resource_id
        super().__init__("%s '%s' does not exist." % (kind, resource_id))


class PollingExhausted(DeployerException):
    """ The waited state was not reached within the attempts or time budget """
    def __init__(self, message, attempts=0, elapsed=0.0):
        self.attempts = attempts
        self.elapsed = elapsed
        super().__init__(message)


class DeploymentTimeoutException(PollingExhausted):
    def __init__(self, app_id, timeout):
        super().__init__("Deployment of %s abandoned after %s seconds." % (app_id, timeout))


class InvariantViolation(DeployerException):
    pass


class UnsupportedStateException(InvariantViolation):
    def __init__(self, kind, state):
        self.state = state
        super().__init__("Unsupported %s state: %s" % (kind, state))


class AlreadyDeployedException(InvariantViolation):
    def __init__(self, app_id, state):
        super().__init__("App %s is already deployed with state %s" % (app_id, state))


class NotDeployedException(InvariantViolation):
    def __init__(self, app_id):
        super().__init__("App %s is not in a deployed state" % app_id)


class MissingProcessTypeException(InvariantViolation):
    def __init__(self, droplet_id, process_type):
        super().__init__("Droplet %s does not define a '%s' process type." % (droplet_id, process_type))


class StagingFailedException(InvariantViolation):
    def __init__(self, droplet_id, error=None):
        msg = "Staging of droplet %s failed." % droplet_id
        if error:
            msg += " %s" % error
        super().__init__(msg)


class UserInputException(DeployerException):
    pass


class InvalidPropertyException(UserInputException):
    def __init__(self, key, value, reason=""):
        msg = "Invalid value '%s' for property %s." % (value, key)
        if reason:
            msg += " %s" % reason
        super().__init__(msg)


class SchedulerException(DeployerException):
    pass


class CreateScheduleException(SchedulerException):
    def __init__(self, schedule_name, cause=None):
        self.cause = cause
        msg = "Failed to create schedule %s" % schedule_name
        if cause is not None:
            msg += ": %s" % cause
        super().__init__(msg)


class InvalidCronExpressionException(CreateScheduleException, UserInputException):
    def __init__(self, schedule_name, expression):
        self.expression = expression
        self.cause = None
        SchedulerException.__init__(self, "Cron Expression '%s' of schedule %s is invalid." %
                                    (expression, schedule_name))


class UnScheduleException(SchedulerException):
    pass


class ScheduleSSLException(SchedulerException):
    """ SSL failure talking to the scheduler service, the only retried scheduling error """
    def __init__(self, schedule_name, cause):
        self.cause = cause
        super().__init__("Failed to schedule %s: %s" % (schedule_name, cause))


class ScheduleMetadataException(SchedulerException):
    pass
