#! /usr/bin/env python
#
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

import argparse
import logging
import logging.config
import logging.handlers
import os
import sys

from CFD import __version__ as version
from CFD.config import Config, load_config
from CFD.AppDeployer import AppDeployer
from CFD.AppDeploymentRequest import AppDefinition, AppDeploymentRequest, AppResource, ScheduleRequest
from CFD.AppScheduler import AppScheduler
from CFD.TaskLauncher import TaskLauncher
from CFD.connectors.CloudFoundry import CloudFoundryClient
from CFD.exceptions import DeployerException

LOGGERS = ['AppDeployer', 'TaskLauncher', 'AppScheduler', 'CloudFoundryClient']


def config_logging():
    """
    Init the logging info
    """
    try:
        # First look at /etc/cfd/logging.conf file
        logging.config.fileConfig('/etc/cfd/logging.conf')
    except Exception as ex:
        print(ex)
        log_dir = os.path.dirname(Config.LOG_FILE)
        if not os.path.isdir(log_dir):
            os.makedirs(log_dir)

        fileh = logging.handlers.RotatingFileHandler(
            filename=Config.LOG_FILE, maxBytes=Config.LOG_FILE_MAX_SIZE, backupCount=3)
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        fileh.setFormatter(formatter)

        if Config.LOG_LEVEL == "DEBUG":
            log_level = logging.DEBUG
        elif Config.LOG_LEVEL == "INFO":
            log_level = logging.INFO
        elif Config.LOG_LEVEL in ["WARN", "WARNING"]:
            log_level = logging.WARN
        elif Config.LOG_LEVEL == "ERROR":
            log_level = logging.ERROR
        elif Config.LOG_LEVEL in ["FATAL", "CRITICAL"]:
            log_level = logging.FATAL
        else:
            log_level = logging.WARN

        logging.RootLogger.propagate = 0
        logging.root.setLevel(logging.ERROR)

        for name in LOGGERS:
            log = logging.getLogger(name)
            log.setLevel(log_level)
            log.propagate = 0
            log.addHandler(fileh)


def parse_properties(values):
    """
    Convert a list of key=value strings in a dict
    """
    properties = {}
    for value in values or []:
        if "=" not in value:
            raise argparse.ArgumentTypeError("Invalid property %s. Use key=value." % value)
        key, val = value.split("=", 1)
        properties[key.strip()] = val.strip()
    return properties


def get_request(args, request_class=AppDeploymentRequest, **kwargs):
    definition = AppDefinition(args.name, parse_properties(args.property))
    return request_class(definition, AppResource(args.resource), deployment_properties=parse_properties(args.deploy),
                         commandline_arguments=args.args, **kwargs)


def get_parser():
    parser = argparse.ArgumentParser(description='CFD service: deploy apps, tasks and schedules in Cloud Foundry')
    parser.add_argument('--version', help='Show CFD version.', dest="version", action="store_true", default=False)
    parser.add_argument('-c', '--config', help='Config file.', dest="config", default=None)
    subparsers = parser.add_subparsers(dest="command")

    def add_request_args(subparser):
        subparser.add_argument('name', help='App name.')
        subparser.add_argument('resource', help='Artifact: file path, file:// or docker:// url.')
        subparser.add_argument('-p', '--property', action="append", help='App property key=value.')
        subparser.add_argument('-d', '--deploy', action="append", help='Deployment property key=value.')
        subparser.add_argument('-a', '--args', action="append", help='Command line argument.')

    add_request_args(subparsers.add_parser('deploy', help='Deploy an app.'))
    subparsers.add_parser('undeploy', help='Undeploy an app.').add_argument('id', help='Deployment id.')
    subparsers.add_parser('status', help='Status of an app.').add_argument('id', help='Deployment id.')
    add_request_args(subparsers.add_parser('launch', help='Launch a task.'))
    subparsers.add_parser('cancel', help='Cancel a task.').add_argument('id', help='Task id.')
    subparsers.add_parser('task-status', help='Status of a task.').add_argument('id', help='Task id.')
    schedule = subparsers.add_parser('schedule', help='Schedule a task.')
    add_request_args(schedule)
    schedule.add_argument('schedule_name', help='Schedule name.')
    schedule.add_argument('expression', help='Cron expression.')
    subparsers.add_parser('unschedule', help='Delete a schedule.').add_argument('schedule_name',
                                                                               help='Schedule name.')
    subparsers.add_parser('list-schedules', help='List the schedules.').add_argument(
        'task_definition_name', nargs="?", default=None, help='Task definition name.')
    return parser


def run(args):
    client = CloudFoundryClient()
    if args.command in ['deploy', 'undeploy', 'status']:
        deployer = AppDeployer(client)
        try:
            if args.command == 'deploy':
                app_id = deployer.deploy(get_request(args))
                deployer.get_future(app_id).result()
                print(app_id)
            elif args.command == 'undeploy':
                deployer.undeploy(args.id).result()
            else:
                status = deployer.status(args.id)
                print(status)
                for instance in status.instances.values():
                    print("  %s %s" % (instance, instance.attributes))
        finally:
            deployer.shutdown()
    else:
        launcher = TaskLauncher(client)
        try:
            if args.command == 'launch':
                print(launcher.launch(get_request(args)))
            elif args.command == 'cancel':
                launcher.cancel(args.id).result()
            elif args.command == 'task-status':
                print(launcher.status(args.id))
            else:
                scheduler = AppScheduler(client, launcher)
                if args.command == 'schedule':
                    request = get_request(args, ScheduleRequest, schedule_name=args.schedule_name,
                                          scheduler_properties={ScheduleRequest.CRON_EXPRESSION_KEY:
                                                                args.expression})
                    scheduler.schedule(request)
                elif args.command == 'unschedule':
                    scheduler.unschedule(args.schedule_name)
                else:
                    for info in scheduler.list(args.task_definition_name):
                        print(info)
        finally:
            launcher.shutdown()


def main():
    parser = get_parser()
    args = parser.parse_args()

    if args.version:
        print("CFD %s" % version)
        sys.exit(0)
    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.config:
        load_config([args.config])
    config_logging()

    try:
        run(args)
    except DeployerException as ex:
        print("Error: %s" % ex)
        sys.exit(1)


if __name__ == "__main__":
    main()
