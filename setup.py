#!/usr/bin/python
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

from CFD import __version__ as version
from setuptools import setup
import sys

if not hasattr(sys, 'version_info') or sys.version_info < (3, 6):
    raise SystemExit("CFD requires Python version 3.6 or above.")

try:
    long_desc = open('README.md').read()
    long_desc_type = 'text/markdown'
except Exception as ex:
    print("Error reading README: %s" % ex)
    long_desc = "CFD is a tool to deploy apps, tasks and schedules on Cloud Foundry"
    long_desc_type = 'text/plain'

setup(name="CFD", version=version,
      author='GRyCAP - Universitat Politecnica de Valencia',
      url='http://www.grycap.upv.es',
      include_package_data=True,
      packages=['CFD', 'CFD.connectors'],
      package_data={'CFD': ['words/*.txt']},
      scripts=["cfd_service.py"],
      license="GPL version 3, http://www.gnu.org/licenses/gpl-3.0.txt",
      long_description=long_desc,
      long_description_content_type=long_desc_type,
      description="CFD is a tool to deploy apps, tasks and schedules on Cloud Foundry",
      platforms=["any"],
      install_requires=["requests >= 2.19", "PyYAML", "croniter", 'urllib3>=1.23'],
      extras_require={"test": ["mock", "pytest"]}
      )
