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
import random


class RandomWords(object):
    """
    Random adjectives and nouns read from the word lists of the package
    """

    WORDS_DIR = os.path.join(os.path.dirname(os.path.realpath(__file__)), "words")

    def __init__(self, adjectives=None, nouns=None, rand=None):
        self.adjectives = adjectives or self._read_words("adjectives.txt")
        self.nouns = nouns or self._read_words("nouns.txt")
        self.random = rand or random.SystemRandom()

    @staticmethod
    def _read_words(filename):
        with open(os.path.join(RandomWords.WORDS_DIR, filename)) as f:
            return [line.strip() for line in f if line.strip()]

    def get_adjective(self):
        return self.random.choice(self.adjectives)

    def get_noun(self):
        return self.random.choice(self.nouns)


class AppNameGenerator(object):
    """
    Generate the name of the deployed apps adding the configured prefix.
    If the random prefix is enabled a random "adjective-noun" is added once
    per process, so all the apps deployed by this process share it.
    """

    def __init__(self, deployment_properties, words=None):
        prefix = deployment_properties.app_name_prefix or ""
        if deployment_properties.enable_random_app_name_prefix:
            words = words or RandomWords()
            random_prefix = "%s-%s" % (words.get_adjective(), words.get_noun())
            prefix = "%s-%s" % (prefix, random_prefix) if prefix else random_prefix
        self.app_name_prefix = prefix

    def generate_app_name(self, app_name):
        if self.app_name_prefix:
            return "%s-%s" % (self.app_name_prefix, app_name)
        else:
            return app_name
