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

from CFD import get_ex_error
from CFD.BaseDeployer import BaseDeployer
from CFD.TaskStatus import TaskStatus, LaunchState, map_task_state
from CFD.exceptions import (MissingProcessTypeException, ResourceNotFound, StagingFailedException,
                            DeployerException)
from CFD.Resource import State


class TaskLauncher(BaseDeployer):
    """
    Launch short lived tasks in Cloud Foundry. Each task definition is staged in
    an app (with the name of the task) that is reused in the next launches.
    """

    PROCESS_TYPE = "web"

    def __init__(self, client, deployment_properties=None, max_workers=None):
        BaseDeployer.__init__(self, client, deployment_properties, 'TaskLauncher', max_workers)

    def launch(self, request):
        """
        Launch a new task and return its id
        """
        name = request.definition.name
        self.log_info("Launching task.", name)
        app = self.stage(request)
        self.bind_services(request, app)
        droplet = self.latest_droplet(app.id)
        command = self.get_command(droplet, request)
        task = self.tasks.create(app.id, droplet.id, name, command)
        self.log_info("Task %s launched." % task.id, name)
        return task.id

    def stage(self, request):
        """
        Get the app of the task with a staged droplet. The app is created if
        it does not exist and staged if it has no staged droplet.
        """
        name = request.definition.name
        space_id = self.get_space_id()
        try:
            app = self.applications.get(name, space_id=space_id)
        except ResourceNotFound:
            app = None

        if app is not None:
            if any(droplet.state == State.STAGED for droplet in self.applications.droplets(app.id)):
                self.log_debug("Reusing the staged droplet of the app.", name)
                return app
            self.log_info("The app has no staged droplet. Staging it.", name)
        else:
            app = self.applications.create(name, space_id, self.buildpack(request), request.resource.is_docker())

        properties = dict(request.definition.properties)
        if properties:
            self.applications.set_environment(app.id, {self.SPRING_APPLICATION_JSON: json.dumps(properties)})
        self._stage_droplet(request, app)
        return app

    def _stage_droplet(self, request, app):
        image = request.resource.get_image()
        package = self.packages.create(app.id, image)
        if not image:
            with request.resource.get_input_stream() as bits:
                package = self.packages.upload(package, bits)
        # The configured staging timeout can only shorten the polling cap of each kind
        staging_timeout = self.deployment_properties.staging_timeout
        package = self.packages.wait_ready(package, lambda p: p.state in (State.READY, State.FAILED),
                                           overall_cap=min(self.packages.WAIT_DEFAULTS["overall_cap"],
                                                           staging_timeout))
        if package.state == State.FAILED:
            raise DeployerException("Package %s of app %s failed." % (package.id, app.id))

        build = self.builds.create(package.id, self.disk_quota(request), self.memory(request))
        build = self.builds.wait_ready(build, overall_cap=min(self.builds.WAIT_DEFAULTS["overall_cap"],
                                                              staging_timeout))
        if build.state == State.FAILED:
            raise StagingFailedException(build.id, build.data.get("error"))
        self.log_info("Droplet %s staged." % self.builds.droplet_id(build), request.definition.name)
        return build

    def bind_services(self, request, app):
        """
        Bind the services of the request to the app. The services already bound are skipped.
        """
        services = self.services_to_bind(request)
        if not services:
            return
        instances = self.bindings.service_instances(self.get_space_id())
        bound = set(self.bindings.service_instance_id(binding) for binding in self.bindings.list(app_id=app.id))
        for service in sorted(services):
            if service not in instances:
                raise ResourceNotFound("service instance", service)
            if instances[service] in bound:
                self.log_debug("Service %s already bound." % service, request.definition.name)
            else:
                self.bindings.create(app.id, instances[service])

    def latest_droplet(self, app_id):
        droplets = [droplet for droplet in self.applications.droplets(app_id) if droplet.state == State.STAGED]
        if not droplets:
            raise ResourceNotFound("staged droplet of app", app_id)
        return max(droplets, key=lambda droplet: droplet.data.get("created_at") or "")

    def get_command(self, droplet, request):
        """
        Get the command of the task: the command of the web process of the droplet
        followed by the command line arguments.
        """
        process_types = droplet.data.get("process_types") or {}
        if self.PROCESS_TYPE not in process_types:
            raise MissingProcessTypeException(droplet.id, self.PROCESS_TYPE)
        command = process_types[self.PROCESS_TYPE]
        if request.commandline_arguments:
            command = "%s %s" % (command, " ".join(request.commandline_arguments))
        return command

    def cancel(self, task_id):
        """
        Cancel the task. It is done asynchronously and the Future is returned.
        """
        self.log_info("Cancelling task %s." % task_id)
        future = self.executor.submit(self.tasks.cancel, task_id)
        future.add_done_callback(lambda f: self._cancel_done(task_id, f))
        return future

    def _cancel_done(self, task_id, future):
        ex = future.exception()
        if ex is None:
            self.log_info("Task %s cancelled." % task_id)
        else:
            self.log_error("Failed to cancel task %s: %s" % (task_id, get_ex_error(ex)))

    def status(self, task_id):
        try:
            task = self.client.get_task(task_id)
        except Exception as ex:
            self.log_warn("Error getting the status of task %s: %s" % (task_id, get_ex_error(ex)))
            return TaskStatus(task_id, LaunchState.unknown)
        attributes = {}
        if task.get("name"):
            attributes["name"] = task["name"]
        failure_reason = (task.get("result") or {}).get("failure_reason")
        if failure_reason:
            attributes["failure_reason"] = failure_reason
        return TaskStatus(task_id, map_task_state(task.get("state")), attributes)

    def destroy(self, app_name):
        """
        Delete the app of a task definition
        """
        self.log_info("Deleting the app of the task.", app_name)
        app = self.applications.get(app_name, space_id=self.get_space_id())
        self.applications.delete(app.id)
