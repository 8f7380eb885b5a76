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

import requests
from croniter import croniter

from CFD import get_ex_error
from CFD.BaseDeployer import BaseDeployer
from CFD.AppDeploymentRequest import AppDefinition, AppDeploymentRequest, ScheduleInfo, ScheduleRequest
from CFD.LoggerMixin import LoggerMixin
from CFD.exceptions import (CreateScheduleException, InvalidCronExpressionException, ScheduleMetadataException,
                            ScheduleSSLException, UnScheduleException, DeployerException)
from CFD.Resource import JobDriver
from CFD.retry import retry_call


class ScheduleCache:
    """
    Names of the task definitions of the schedules. It is only a best effort
    cache: it is not shared among processes nor synchronized.
    """

    def __init__(self):
        self._task_definitions = {}

    def get(self, schedule_name):
        return self._task_definitions.get(schedule_name)

    def put(self, schedule_name, task_definition_name):
        self._task_definitions[schedule_name] = task_definition_name

    def remove(self, schedule_name):
        self._task_definitions.pop(schedule_name, None)


class AppScheduler(LoggerMixin):
    """
    Schedule the launch of tasks using the Cloud Foundry scheduler service.
    The task is staged in an app with the name of the schedule and a job
    of the scheduler launches it with the cron expression of the request.
    """

    TASK_DEFINITION_NAME_KEY = "spring-task-definition-name"

    def __init__(self, client, task_launcher, cache=None):
        self.logger = logging.getLogger('AppScheduler')
        """Logger object."""
        self.client = client
        self.task_launcher = task_launcher
        self.deployment_properties = task_launcher.deployment_properties
        self.cache = cache if cache is not None else ScheduleCache()
        self.jobs = JobDriver(client, self.logger)

    def _staging_request(self, request):
        """
        Request of the app of the schedule: it has the name of the schedule and
        stores the task definition name in the app properties.
        """
        properties = dict(request.definition.properties)
        properties[self.TASK_DEFINITION_NAME_KEY] = request.definition.name
        return AppDeploymentRequest(AppDefinition(request.schedule_name, properties), request.resource,
                                    request.deployment_properties, request.commandline_arguments)

    def schedule(self, request):
        """
        Create a schedule of the task of the request. If the schedule
        can not be created, the partially created resources are removed.
        """
        name = request.schedule_name
        expression = request.get_cron_expression()
        if not expression or not croniter.is_valid(expression):
            raise InvalidCronExpressionException(name, expression)

        self.log_info("Scheduling task %s with expression: %s" % (request.definition.name, expression), name)
        try:
            staging_request = self._staging_request(request)
            app = self.task_launcher.stage(staging_request)
            self.cache.put(name, request.definition.name)
            self.task_launcher.bind_services(staging_request, app)
            droplet = self.task_launcher.latest_droplet(app.id)
            command = self.task_launcher.get_command(droplet, request)
            retry_call(lambda: self._schedule_job(name, app.id, command, expression),
                       retry_on=(ScheduleSSLException,),
                       max_attempts=self.deployment_properties.schedule_ssl_retry_count,
                       initial_delay=1, max_delay=10, description="schedule %s" % name)
        except Exception as ex:
            self.log_error("Failed to create schedule: %s" % get_ex_error(ex), name)
            try:
                self.unschedule(name)
            except UnScheduleException as uex:
                self.log_debug("Nothing to clean: %s" % get_ex_error(uex), name)
            raise CreateScheduleException(name, ex)
        self.log_info("Schedule created.", name)

    def _schedule_job(self, name, app_id, command, expression):
        timeout = self.deployment_properties.schedule_timeout
        try:
            job = self.jobs.create(app_id, name, command, timeout)
            self.jobs.schedule(job, expression, timeout)
        except requests.exceptions.SSLError as ex:
            raise ScheduleSSLException(name, ex)

    def unschedule(self, schedule_name):
        """
        Delete the job of the schedule. Raises UnScheduleException if it does not exist.
        """
        self.log_info("Unscheduling.", schedule_name)
        self.cache.remove(schedule_name)
        try:
            job = self.jobs.find(schedule_name, self.task_launcher.get_space_id(),
                                 self.deployment_properties.list_timeout)
        except DeployerException as ex:
            raise UnScheduleException("Failed to unschedule %s: %s" % (schedule_name, get_ex_error(ex)))
        if job is None:
            raise UnScheduleException("Failed to unschedule %s, schedule does not exist." % schedule_name)
        try:
            self.jobs.delete(job.id, timeout=self.deployment_properties.unschedule_timeout)
        except DeployerException as ex:
            raise UnScheduleException("Failed to unschedule %s: %s" % (schedule_name, get_ex_error(ex)))
        self.log_info("Schedule deleted.", schedule_name)

    def list(self, task_definition_name=None):
        """
        List the schedules of the space, optionally only the ones of a task definition
        """
        space_id = self.task_launcher.get_space_id()
        jobs = self.jobs.list(space_id=space_id, detailed=True, timeout=self.deployment_properties.list_timeout)
        app_names = dict((app.id, app.data.get("name")) for app in
                         self.task_launcher.applications.list(space_id=space_id))

        schedules = []
        for job in jobs:
            schedule_name = job.data.get("name")
            app_id = job.data.get("app_guid")
            if app_id not in app_names:
                self.log_warn("The app %s of the job does not exist. Skipping it." % app_id, schedule_name)
                continue

            properties = {}
            job_schedules = job.data.get("job_schedules") or []
            if job_schedules:
                properties[ScheduleRequest.CRON_EXPRESSION_KEY] = job_schedules[0].get("expression")
            else:
                self.log_warn("Job %s has no schedules." % job.id, schedule_name)

            definition_name = self.cache.get(schedule_name)
            if definition_name is None:
                definition_name = self._task_definition_name(app_id, app_names[app_id])
                if definition_name:
                    self.cache.put(schedule_name, definition_name)

            if task_definition_name is None or definition_name == task_definition_name:
                schedules.append(ScheduleInfo(schedule_name, definition_name, properties))
        return schedules

    def _task_definition_name(self, app_id, app_name):
        env = self.task_launcher.applications.environment(app_id)
        raw = env.get(BaseDeployer.SPRING_APPLICATION_JSON)
        if not raw:
            return None
        try:
            return json.loads(raw).get(self.TASK_DEFINITION_NAME_KEY)
        except (ValueError, AttributeError) as ex:
            raise ScheduleMetadataException("Unable to read the task definition name of app %s: %s" %
                                            (app_name, get_ex_error(ex)))
