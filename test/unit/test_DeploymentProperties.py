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

import os
import sys
import tempfile
import unittest

sys.path.append(".")
sys.path.append("..")
from CFD import comma_delimited_list_to_set
from CFD.config import Config, load_config
from CFD.AppDeploymentRequest import AppDefinition, AppDeploymentRequest, AppResource
from CFD.AppNameGenerator import AppNameGenerator, RandomWords
from CFD.DeploymentProperties import DeploymentProperties, parse_to_mebibytes, parse_bool, MEMORY_PROPERTY_KEY
from CFD.exceptions import InvalidPropertyException
from mock import MagicMock


class TestDeploymentProperties(unittest.TestCase):
    """
    Class to test the deployment properties, the config and the name generator
    """

    def test_parse_to_mebibytes(self):
        self.assertEqual(parse_to_mebibytes("512"), 512)
        self.assertEqual(parse_to_mebibytes("512m"), 512)
        self.assertEqual(parse_to_mebibytes("512M"), 512)
        self.assertEqual(parse_to_mebibytes("2g"), 2048)
        self.assertEqual(parse_to_mebibytes(1024), 1024)
        with self.assertRaises(InvalidPropertyException):
            parse_to_mebibytes("1.5g")
        with self.assertRaises(InvalidPropertyException):
            parse_to_mebibytes("10k")

    def test_parse_bool(self):
        self.assertTrue(parse_bool("true", "key"))
        self.assertFalse(parse_bool("False", "key"))
        self.assertTrue(parse_bool(True, "key"))
        with self.assertRaises(InvalidPropertyException):
            parse_bool("maybe", "key")

    def test_request_overrides_defaults(self):
        props = DeploymentProperties()
        props.memory = "1g"
        request = AppDeploymentRequest(AppDefinition("app"), AppResource("/tmp/app.jar"),
                                       {MEMORY_PROPERTY_KEY: "2g"})
        self.assertEqual(props.get(request, MEMORY_PROPERTY_KEY, props.memory), "2g")
        request = AppDeploymentRequest(AppDefinition("app"), AppResource("/tmp/app.jar"),
                                       {MEMORY_PROPERTY_KEY: ""})
        self.assertEqual(props.get(request, MEMORY_PROPERTY_KEY, props.memory), "1g")

    def test_request_is_read_only(self):
        request = AppDeploymentRequest(AppDefinition("app", {"foo": "bar"}), AppResource("/tmp/app.jar"),
                                       {"deployer.count": "2"}, ["--a=1"])
        with self.assertRaises(TypeError):
            request.deployment_properties["deployer.count"] = "3"
        with self.assertRaises(TypeError):
            request.definition.properties["foo"] = "other"
        self.assertEqual(request.commandline_arguments, ("--a=1",))

    def test_app_resource(self):
        resource = AppResource("docker://springcloud/timestamp-task:latest")
        self.assertTrue(resource.is_docker())
        self.assertEqual(resource.get_image(), "springcloud/timestamp-task:latest")
        self.assertIsNone(resource.get_path())

        resource = AppResource("file:///tmp/app.jar")
        self.assertFalse(resource.is_docker())
        self.assertIsNone(resource.get_image())
        self.assertEqual(resource.get_path(), "/tmp/app.jar")

        with AppResource(content=b"bits").get_input_stream() as stream:
            self.assertEqual(stream.read(), b"bits")
        with self.assertRaises(IOError):
            AppResource("/non/existing/app.jar").get_input_stream()

    def test_app_name_generator(self):
        props = DeploymentProperties()
        props.app_name_prefix = "dataflow-server"
        props.enable_random_app_name_prefix = False
        generator = AppNameGenerator(props)
        self.assertEqual(generator.generate_app_name("ticktock-time"), "dataflow-server-ticktock-time")

        props.enable_random_app_name_prefix = True
        words = MagicMock()
        words.get_adjective.return_value = "happy"
        words.get_noun.return_value = "badger"
        generator = AppNameGenerator(props, words)
        self.assertEqual(generator.generate_app_name("time"), "dataflow-server-happy-badger-time")
        # The prefix is generated only once
        self.assertEqual(generator.generate_app_name("log"), "dataflow-server-happy-badger-log")
        self.assertEqual(words.get_noun.call_count, 1)

        props.app_name_prefix = ""
        props.enable_random_app_name_prefix = False
        self.assertEqual(AppNameGenerator(props).generate_app_name("time"), "time")

    def test_random_words(self):
        words = RandomWords()
        self.assertIn(words.get_adjective(), words.adjectives)
        self.assertIn(words.get_noun(), words.nouns)
        self.assertTrue(all(word.isalpha() for word in words.adjectives + words.nouns))

    def test_comma_delimited_list_to_set(self):
        self.assertEqual(comma_delimited_list_to_set("a, b,,c "), set(["a", "b", "c"]))
        self.assertEqual(comma_delimited_list_to_set(None), set())
        self.assertEqual(comma_delimited_list_to_set(["a ", ""]), set(["a"]))

    def test_load_config(self):
        old_values = dict((k, getattr(Config, k)) for k in ["API_URL", "VERIFY_SSL", "DEFAULT_SERVICES",
                                                            "STATUS_TIMEOUT", "SCHEDULE_SSL_RETRY_COUNT"])
        fd, filename = tempfile.mkstemp(suffix=".cfg")
        try:
            with os.fdopen(fd, "w") as f:
                f.write("[cfd]\n"
                        "API_URL = https://api.example.com\n"
                        "VERIFY_SSL = False\n"
                        "DEFAULT_SERVICES = mysql, rabbit\n"
                        "STATUS_TIMEOUT = 2.5\n"
                        "SCHEDULE_SSL_RETRY_COUNT = 3\n"
                        "UNKNOWN_OPTION = 1\n")
            load_config([filename])
            self.assertEqual(Config.API_URL, "https://api.example.com")
            self.assertFalse(Config.VERIFY_SSL)
            self.assertEqual(Config.DEFAULT_SERVICES, ["mysql", "rabbit"])
            self.assertEqual(Config.STATUS_TIMEOUT, 2.5)
            self.assertEqual(Config.SCHEDULE_SSL_RETRY_COUNT, 3)
            self.assertFalse(hasattr(Config, "UNKNOWN_OPTION"))

            props = DeploymentProperties()
            self.assertEqual(props.services, set(["mysql", "rabbit"]))
            self.assertEqual(props.status_timeout, 2.5)
        finally:
            os.unlink(filename)
            for key, value in old_values.items():
                setattr(Config, key, value)


if __name__ == '__main__':
    unittest.main()
