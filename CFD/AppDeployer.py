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

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError

import yaml

from CFD import get_ex_error, comma_delimited_list_to_set
from CFD.AppNameGenerator import AppNameGenerator
from CFD.AppStatus import AppStatus, DeploymentState
from CFD.BaseDeployer import BaseDeployer
from CFD.DeploymentProperties import (parse_bool, GROUP_PROPERTY_KEY, HEALTHCHECK_ENDPOINT_PROPERTY_KEY,
                                      HEALTHCHECK_TIMEOUT_PROPERTY_KEY, ROUTE_PATH_PROPERTY, ROUTES_PROPERTY,
                                      NO_ROUTE_PROPERTY, HOST_PROPERTY, DOMAIN_PROPERTY)
from CFD.exceptions import (AlreadyDeployedException, NotDeployedException, DeploymentTimeoutException,
                            DeployerException, InvalidPropertyException, PollingExhausted,
                            ResourceNotFound, StagingFailedException)
from CFD.Resource import OperationDriver, State
from CFD.retry import Deadline, retry_call


class AppDeployer(BaseDeployer):
    """
    Deploy long running apps in Cloud Foundry.

    The deployment is done in two parts: the validation and the manifest are
    done synchronously in the deploy call, and the push sequence (apply the
    manifest, upload, stage, start) is done in a thread of the pool.
    """

    UNRESOLVED = "UNRESOLVED"
    CHECKING_EXISTENCE = "CHECKING_EXISTENCE"
    CREATING = "CREATING"
    REUSING = "REUSING"
    CONFIGURING = "CONFIGURING"
    STARTING = "STARTING"
    DEPLOYED = "DEPLOYED"
    ERROR = "ERROR"

    def __init__(self, client, deployment_properties=None, name_generator=None, max_workers=None):
        BaseDeployer.__init__(self, client, deployment_properties, 'AppDeployer', max_workers)
        self.name_generator = name_generator or AppNameGenerator(self.deployment_properties)
        self.operations = OperationDriver(client, self.logger)
        self.futures = {}
        """Futures of the push sequences by deployment id"""
        self.status_executor = ThreadPoolExecutor(max_workers=max_workers)
        """Pool of the threads that get the status, bounded by the status timeout"""

    def shutdown(self, wait=True):
        BaseDeployer.shutdown(self, wait)
        self.status_executor.shutdown(wait)

    def _transition(self, app_id, state):
        self.log_info("Deployment state: %s" % state, app_id)

    def deployment_id(self, request):
        group = request.deployment_properties.get(GROUP_PROPERTY_KEY)
        if group:
            name = "%s-%s" % (group, request.definition.name)
        else:
            name = request.definition.name
        return self.name_generator.generate_app_name(name)

    def deploy(self, request, callback=None):
        """
        Deploy an app and return the deployment id.
        The push is done asynchronously: its Future is returned by get_future and
        it is passed to the callback (if set) when done.
        """
        app_id = self.deployment_id(request)
        self._transition(app_id, self.UNRESOLVED)

        status = self.status(app_id)
        if status.state not in (DeploymentState.unknown, DeploymentState.error):
            raise AlreadyDeployedException(app_id, status.state.value)

        manifest = self.build_manifest(request, app_id)
        self.log_debug("Manifest:\n%s" % yaml.safe_dump(manifest, default_flow_style=False), app_id)

        future = self.executor.submit(self._push, request, app_id, manifest)
        self.futures[app_id] = future
        future.add_done_callback(lambda f: self._deploy_done(app_id, f))
        if callback:
            future.add_done_callback(callback)
        return app_id

    def get_future(self, app_id):
        return self.futures.get(app_id)

    def _check_deadline(self, app_id, deadline):
        if deadline.expired():
            raise DeploymentTimeoutException(app_id, deadline.timeout)

    def _push(self, request, app_id, manifest):
        deadline = Deadline(self.deployment_properties.api_timeout)
        try:
            return self._push_steps(request, app_id, manifest, deadline)
        except Exception as ex:
            self._transition(app_id, self.ERROR)
            if isinstance(ex, PollingExhausted) and not isinstance(ex, DeploymentTimeoutException) \
                    and deadline.expired():
                raise DeploymentTimeoutException(app_id, deadline.timeout)
            raise

    def _push_steps(self, request, app_id, manifest, deadline):
        self._transition(app_id, self.CHECKING_EXISTENCE)
        space_id = self.get_space_id()
        existed = self.applications.exists(app_id, space_id)

        self._check_deadline(app_id, deadline)
        operation_id = self.client.apply_manifest(space_id, {"applications": [manifest]},
                                                  timeout=deadline.remaining())
        if operation_id:
            operation = self.operations.wait_ready(self.operations.get(operation_id),
                                                   overall_cap=deadline.remaining())
            if operation.state == State.FAILED:
                raise DeployerException("Error applying the manifest of %s: %s" %
                                        (app_id, OperationDriver.errors(operation)))
        self._transition(app_id, self.REUSING if existed else self.CREATING)
        app = self.applications.get(app_id, space_id=space_id)

        self._check_deadline(app_id, deadline)
        image = request.resource.get_image()
        package = self.packages.create(app.id, image)
        if not image:
            with request.resource.get_input_stream() as bits:
                package = self.packages.upload(package, bits, timeout=deadline.remaining())
        package = self.packages.wait_ready(package, lambda p: p.state in (State.READY, State.FAILED),
                                           overall_cap=deadline.remaining())
        if package.state == State.FAILED:
            raise DeployerException("Package %s of app %s failed." % (package.id, app_id))

        self._check_deadline(app_id, deadline)
        build = self.builds.create(package.id, self.disk_quota(request), self.memory(request))
        build = self.builds.wait_ready(build, overall_cap=min(self.deployment_properties.staging_timeout,
                                                              deadline.remaining()))
        if build.state == State.FAILED:
            raise StagingFailedException(build.id, build.data.get("error"))

        self._check_deadline(app_id, deadline)
        droplet = self.droplets.get(self.builds.droplet_id(build))
        if droplet.state != State.STAGED:
            raise StagingFailedException(droplet.id, "Droplet state: %s" % droplet.raw_state)
        self._transition(app_id, self.CONFIGURING)
        self.applications.set_current_droplet(app.id, droplet.id)

        self._check_deadline(app_id, deadline)
        self._transition(app_id, self.STARTING)
        self.applications.start(app.id)
        self._transition(app_id, self.DEPLOYED)
        return app.id

    def _deploy_done(self, app_id, future):
        if future.cancelled():
            self.log_warn("Deployment cancelled.", app_id)
            return
        ex = future.exception()
        if ex is None:
            self.log_info("App deployed successfully.", app_id)
        elif self.is_not_found(ex):
            self.log_warn("Unable to deploy app. It may have been destroyed before the start completed: %s" %
                          get_ex_error(ex), app_id)
        else:
            self.log_error("Failed to deploy app: %s" % get_ex_error(ex), app_id)

    def undeploy(self, app_id):
        """
        Delete the app and its routes. The deletion is done asynchronously and
        its Future is returned.
        """
        self.log_info("Undeploying app.", app_id)
        status = self.status(app_id)
        if status.state == DeploymentState.unknown:
            raise NotDeployedException(app_id)

        future = self.executor.submit(self._delete, app_id)
        future.add_done_callback(lambda f: self._undeploy_done(app_id, f))
        return future

    def _delete(self, app_id):
        app = self.applications.get(app_id, space_id=self.get_space_id())
        self.applications.delete(app.id, delete_routes=True)
        self.futures.pop(app_id, None)

    def _undeploy_done(self, app_id, future):
        ex = future.exception()
        if ex is None:
            self.log_info("App undeployed successfully.", app_id)
        elif self.is_not_found(ex):
            self.log_warn("Unable to undeploy app. It may have been already deleted: %s" % get_ex_error(ex),
                          app_id)
        else:
            self.log_error("Failed to undeploy app: %s" % get_ex_error(ex), app_id)

    def status(self, app_id):
        """
        Get the AppStatus of the app. A missing app has the unknown state and
        errors getting the status, once the status timeout is exhausted, the error state.
        Every call to the platform is bounded by the remaining status timeout.
        """
        timeout = self.deployment_properties.status_timeout
        deadline = Deadline(timeout)

        def get_detail():
            if deadline.expired():
                raise PollingExhausted("Status timeout of %s seconds exhausted." % timeout, 0, deadline.elapsed())
            future = self.status_executor.submit(self._get_detail, app_id, deadline.remaining())
            try:
                return future.result(deadline.remaining())
            except FutureTimeoutError:
                future.cancel()
                raise PollingExhausted("Timeout getting the status: %s." % deadline, 0, deadline.elapsed())

        try:
            detail = retry_call(get_detail, retry_on=(Exception,), max_attempts=None, initial_delay=timeout * 0.1,
                                max_delay=timeout * 0.5, overall_cap=timeout, description="status of %s" % app_id)
        except Exception as ex:
            self.log_warn("Error getting the status of the app: %s" % get_ex_error(ex), app_id)
            return AppStatus(app_id, DeploymentState.error)

        if detail is None:
            self.log_debug("App does not exist.", app_id)
            return AppStatus(app_id)
        return AppStatus.of(app_id, detail)

    def _get_detail(self, app_id, timeout):
        space_id = self.get_space_id()
        try:
            return self.applications.get_detail(app_id, space_id, timeout=timeout)
        except ResourceNotFound:
            return None

    def routes(self, request, app_id):
        """
        Get the routes of the app: the explicit ones or host.domain/path.
        Returns None if the app must have no route and an empty list to use the default one.
        """
        props = self.deployment_properties
        if parse_bool(props.get(request, NO_ROUTE_PROPERTY, False), NO_ROUTE_PROPERTY):
            return None

        routes = comma_delimited_list_to_set(props.get(request, ROUTES_PROPERTY, None))
        if routes:
            return sorted(routes)

        domain = props.get(request, DOMAIN_PROPERTY, props.domain)
        if not domain:
            return []
        route = "%s.%s" % (props.get(request, HOST_PROPERTY, props.host) or app_id, domain)
        path = props.get(request, ROUTE_PATH_PROPERTY, props.route_path)
        if path:
            route += path if path.startswith("/") else "/" + path
        return [route]

    def build_manifest(self, request, app_id):
        """
        Build the manifest of the app. Invalid deployment properties raise
        InvalidPropertyException before any remote call.
        """
        manifest = {
            "name": app_id,
            "instances": self.instances(request),
            "memory": "%dM" % self.memory(request),
            "disk_quota": "%dM" % self.disk_quota(request),
        }

        image = request.resource.get_image()
        if image:
            manifest["docker"] = {"image": image}
        else:
            manifest["buildpacks"] = [self.buildpack(request)]

        health_check = self.health_check(request)
        manifest["health-check-type"] = health_check
        endpoint = self.deployment_properties.get(request, HEALTHCHECK_ENDPOINT_PROPERTY_KEY,
                                                  self.deployment_properties.health_check_endpoint)
        if health_check == "http" and endpoint:
            manifest["health-check-http-endpoint"] = endpoint
        invocation_timeout = request.deployment_properties.get(HEALTHCHECK_TIMEOUT_PROPERTY_KEY)
        if invocation_timeout:
            try:
                manifest["health-check-invocation-timeout"] = int(invocation_timeout)
            except ValueError:
                raise InvalidPropertyException(HEALTHCHECK_TIMEOUT_PROPERTY_KEY, invocation_timeout,
                                               "It must be an integer.")
        manifest["timeout"] = self.deployment_properties.startup_timeout

        routes = self.routes(request, app_id)
        if routes is None:
            manifest["no-route"] = True
        elif routes:
            manifest["routes"] = [{"route": route} for route in routes]
        else:
            manifest["default-route"] = True

        services = self.services_to_bind(request)
        if services:
            manifest["services"] = sorted(services)

        manifest["env"] = self.get_environment_variables(request, app_id)
        return manifest
