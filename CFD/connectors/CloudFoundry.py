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
import yaml

from CFD.config import Config
from CFD.LoggerMixin import LoggerMixin
from CFD.exceptions import CloudFoundryException


class CloudFoundryClient(LoggerMixin):
    """
    Client of the Cloud Foundry v3 API and the Scheduler service API.
    All the methods return the decoded JSON of the responses and raise
    CloudFoundryException if the platform returns an error code.
    """

    type = "CloudFoundry"
    """str with the name of the provider."""

    def __init__(self, api_url=None, scheduler_url=None, uaa_url=None, username=None, password=None,
                 token=None, verify_ssl=None, timeout=None):
        self.logger = logging.getLogger('CloudFoundryClient')
        """Logger object."""
        self.api_url = (api_url or Config.API_URL).rstrip("/")
        self.scheduler_url = (scheduler_url or Config.SCHEDULER_URL).rstrip("/")
        self.uaa_url = (uaa_url or Config.UAA_URL).rstrip("/")
        self.username = username or Config.USERNAME
        self.password = password or Config.PASSWORD
        self.token = token or Config.TOKEN
        self.verify_ssl = Config.VERIFY_SSL if verify_ssl is None else verify_ssl
        """Verify SSL connections """
        self.timeout = timeout or Config.REQUEST_TIMEOUT
        if not self.verify_ssl:
            # To avoid annoying InsecureRequestWarning messages
            from urllib3.exceptions import InsecureRequestWarning
            requests.packages.urllib3.disable_warnings(InsecureRequestWarning)

    def _get_token(self):
        """
        Get an access token from the UAA server using the user credentials
        """
        if not self.username or not self.password:
            raise CloudFoundryException(401, "No auth data has been specified to %s: token or username and "
                                        "password." % self.type)
        uaa_url = self.uaa_url
        if not uaa_url:
            resp = requests.request("GET", self.api_url + "/", verify=self.verify_ssl, timeout=self.timeout)
            uaa_url = resp.json()["links"]["uaa"]["href"]
            self.uaa_url = uaa_url
        resp = requests.request("POST", "%s/oauth/token" % uaa_url, auth=("cf", ""),
                                data={"grant_type": "password", "username": self.username,
                                      "password": self.password},
                                headers={"Accept": "application/json"},
                                verify=self.verify_ssl, timeout=self.timeout)
        if resp.status_code != 200:
            raise CloudFoundryException(resp.status_code, "Error getting the UAA token: %s" % resp.text)
        return resp.json()["access_token"]

    def _get_auth_header(self):
        if not self.token:
            self.token = self._get_token()
        return {"Authorization": "Bearer %s" % self.token}

    def create_request(self, method, url, body=None, params=None, headers=None, data=None, files=None,
                       base_url=None, timeout=None):
        if headers is None:
            headers = {}
        headers.update(self._get_auth_header())
        if body is not None and isinstance(body, (dict, list)):
            data = json.dumps(body)
            headers['Content-Type'] = 'application/json'

        url = "%s%s" % (base_url or self.api_url, url)
        resp = requests.request(method, url, verify=self.verify_ssl, headers=headers, params=params,
                                data=data, files=files, timeout=timeout or self.timeout)
        if resp.status_code == 401 and self.username:
            # The token may have expired, get a new one and try again
            self.token = None
            headers.update(self._get_auth_header())
            resp = requests.request(method, url, verify=self.verify_ssl, headers=headers, params=params,
                                    data=data, files=files, timeout=timeout or self.timeout)
        return resp

    def _call(self, method, url, expected=(200,), **kwargs):
        resp = self.create_request(method, url, **kwargs)
        if resp.status_code not in expected:
            self.log_debug("Error in %s %s: %s %s" % (method, url, resp.status_code, resp.text))
            raise CloudFoundryException(resp.status_code, resp.text)
        if resp.status_code == 204 or not resp.text:
            return {}
        return resp.json()

    @staticmethod
    def _page_params(page, **filters):
        params = {"page": page}
        for key, value in filters.items():
            if value is not None:
                params[key] = value
        return params

    # Spaces

    def list_organizations(self, name=None, page=1):
        return self._call("GET", "/v3/organizations", params=self._page_params(page, names=name))

    def list_spaces(self, name=None, organization_id=None, page=1):
        return self._call("GET", "/v3/spaces", params=self._page_params(page, names=name,
                                                                       organization_guids=organization_id))

    # Applications

    def list_applications(self, name=None, space_id=None, page=1, timeout=None):
        return self._call("GET", "/v3/apps", params=self._page_params(page, names=name, space_guids=space_id),
                          timeout=timeout)

    def create_application(self, name, space_id, buildpack=None, docker=False):
        body = {"name": name, "relationships": {"space": {"data": {"guid": space_id}}}}
        if docker:
            body["lifecycle"] = {"type": "docker", "data": {}}
        else:
            body["lifecycle"] = {"type": "buildpack", "data": {"buildpacks": [buildpack] if buildpack else []}}
        return self._call("POST", "/v3/apps", (201,), body=body)

    def delete_application(self, app_id, delete_routes=True):
        if delete_routes:
            routes = self._call("GET", "/v3/apps/%s/routes" % app_id)
            for route in routes.get("resources", []):
                self.log_debug("Deleting route %s of app %s." % (route.get("url"), app_id))
                self._call("DELETE", "/v3/routes/%s" % route["guid"], (202, 204, 404))
        return self._call("DELETE", "/v3/apps/%s" % app_id, (202, 204))

    def get_application(self, name, space_id=None, timeout=None):
        """
        Get the detail of an app: id, name, instances, running_instances, urls and
        the stats of the instances.
        """
        apps = self.list_applications(name=name, space_id=space_id, timeout=timeout).get("resources", [])
        if not apps:
            raise CloudFoundryException(404, "App %s not found" % name)
        app = apps[0]

        try:
            process = self._call("GET", "/v3/apps/%s/processes/web" % app["guid"], timeout=timeout)
        except CloudFoundryException as ex:
            if ex.status_code != 404:
                raise
            process = None

        instance_details = []
        instances = 0
        if process:
            instances = process.get("instances", 0)
            stats = self._call("GET", "/v3/processes/%s/stats" % process["guid"], timeout=timeout)
            for stat in stats.get("resources", []):
                usage = stat.get("usage") or {}
                instance_details.append({
                    "index": stat.get("index"),
                    "state": stat.get("state"),
                    "cpu": usage.get("cpu"),
                    "memory_usage": usage.get("mem"),
                    "memory_quota": stat.get("mem_quota"),
                    "disk_usage": usage.get("disk"),
                    "disk_quota": stat.get("disk_quota")
                })

        routes = self._call("GET", "/v3/apps/%s/routes" % app["guid"], timeout=timeout)
        return {
            "id": app["guid"],
            "name": app["name"],
            "state": app.get("state"),
            "instances": instances,
            "running_instances": len([i for i in instance_details if i["state"] == "RUNNING"]),
            "urls": [route["url"] for route in routes.get("resources", [])],
            "instance_details": instance_details
        }

    def get_application_environment(self, app_id):
        env = self._call("GET", "/v3/apps/%s/env" % app_id)
        return env.get("environment_variables", {})

    def update_application_environment(self, app_id, env):
        return self._call("PATCH", "/v3/apps/%s/environment_variables" % app_id, body={"var": env})

    def list_application_droplets(self, app_id, page=1):
        return self._call("GET", "/v3/apps/%s/droplets" % app_id, params=self._page_params(page))

    def set_current_droplet(self, app_id, droplet_id):
        return self._call("PATCH", "/v3/apps/%s/relationships/current_droplet" % app_id,
                          body={"data": {"guid": droplet_id}})

    def start_application(self, app_id):
        return self._call("POST", "/v3/apps/%s/actions/start" % app_id)

    def apply_manifest(self, space_id, manifest, timeout=None):
        """
        Apply a manifest to the space. Returns the id of the platform job that
        performs the operation.
        """
        data = yaml.safe_dump(manifest, default_flow_style=False, width=512)
        self.log_debug("Applying manifest:\n%s" % data)
        resp = self.create_request("POST", "/v3/spaces/%s/actions/apply_manifest" % space_id,
                                   headers={"Content-Type": "application/x-yaml"}, data=data, timeout=timeout)
        if resp.status_code != 202:
            raise CloudFoundryException(resp.status_code, resp.text)
        return resp.headers.get("Location", "").rstrip("/").split("/")[-1]

    def get_platform_job(self, job_id):
        return self._call("GET", "/v3/jobs/%s" % job_id)

    # Packages

    def create_package(self, app_id, image=None):
        body = {"type": "docker" if image else "bits",
                "relationships": {"app": {"data": {"guid": app_id}}}}
        if image:
            body["data"] = {"image": image}
        return self._call("POST", "/v3/packages", (201,), body=body)

    def upload_package(self, package_id, bits, timeout=None):
        return self._call("POST", "/v3/packages/%s/upload" % package_id,
                          files={"bits": ("application.zip", bits)}, timeout=timeout)

    def get_package(self, package_id):
        return self._call("GET", "/v3/packages/%s" % package_id)

    # Staging and droplets

    def stage_package(self, package_id, disk_mb=None, memory_mb=None):
        body = {"package": {"guid": package_id}}
        if disk_mb:
            body["staging_disk_in_mb"] = disk_mb
        if memory_mb:
            body["staging_memory_in_mb"] = memory_mb
        return self._call("POST", "/v3/builds", (201,), body=body)

    def get_build(self, build_id):
        return self._call("GET", "/v3/builds/%s" % build_id)

    def get_droplet(self, droplet_id):
        return self._call("GET", "/v3/droplets/%s" % droplet_id)

    # Tasks

    def create_task(self, app_id, droplet_id, name, command):
        body = {"name": name, "command": command, "droplet_guid": droplet_id}
        return self._call("POST", "/v3/apps/%s/tasks" % app_id, (201, 202), body=body)

    def cancel_task(self, task_id):
        return self._call("POST", "/v3/tasks/%s/actions/cancel" % task_id, (200, 202))

    def get_task(self, task_id):
        return self._call("GET", "/v3/tasks/%s" % task_id)

    # Services

    def list_service_instances(self, space_id=None, page=1):
        return self._call("GET", "/v3/service_instances", params=self._page_params(page, space_guids=space_id))

    def create_service_binding(self, app_id, service_instance_id):
        body = {"type": "app",
                "relationships": {"app": {"data": {"guid": app_id}},
                                  "service_instance": {"data": {"guid": service_instance_id}}}}
        return self._call("POST", "/v3/service_credential_bindings", (201, 202), body=body)

    def list_service_bindings(self, app_id, page=1):
        return self._call("GET", "/v3/service_credential_bindings",
                          params=self._page_params(page, app_guids=app_id))

    def delete_service_binding(self, binding_id):
        return self._call("DELETE", "/v3/service_credential_bindings/%s" % binding_id, (202, 204))

    # Scheduler jobs

    def create_job(self, app_id, name, command, timeout=None):
        return self._call("POST", "/jobs", (201,), body={"name": name, "command": command},
                          params={"app_guid": app_id}, base_url=self.scheduler_url, timeout=timeout)

    def schedule_job(self, job_id, expression, timeout=None):
        body = {"enabled": True, "expression": expression, "expression_type": "cron"}
        return self._call("POST", "/jobs/%s/schedules" % job_id, (201,), body=body,
                          base_url=self.scheduler_url, timeout=timeout)

    def delete_job(self, job_id, timeout=None):
        return self._call("DELETE", "/jobs/%s" % job_id, (204,), base_url=self.scheduler_url, timeout=timeout)

    def list_jobs(self, space_id, page=1, detailed=False, timeout=None):
        params = self._page_params(page, space_guid=space_id, detailed=str(detailed).lower())
        return self._call("GET", "/jobs", params=params, base_url=self.scheduler_url, timeout=timeout)
