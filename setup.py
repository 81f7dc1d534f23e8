#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
"""The setup.py file."""

import os
import sys

from setuptools import find_packages, setup
from setuptools.command.install import install

with open("src/meross_tx/version.py") as fh:
    for line in fh:
        if line.strip().startswith("__version__"):
            VERSION = line.split("=")[-1].strip().strip("\"'")
            break

URL = "https://github.com/meross-iot/meross_iot"

with open("README.md", "r") as fh:
    LONG_DESCRIPTION = fh.read()

with open("requirements.txt") as fh:
    REQUIREMENTS = [line.strip() for line in fh if line.strip()]


class VerifyVersionCommand(install):
    """Custom command to verify that the git tag matches our VERSION."""

    def run(self):
        tag = os.getenv("CIRCLE_TAG")
        if tag != VERSION:
            info = f"Git tag: {tag} does not match the version of this pkg: {VERSION}"
            sys.exit(info)


setup(
    name="meross-iot",
    description="A push notification decoder & device state client for Meross devices.",
    keywords=["meross", "mqtt", "smart plug", "hub", "iot"],
    url=URL,
    download_url=f"{URL}/archive/{VERSION}.tar.gz",
    install_requires=REQUIREMENTS,
    extras_require={"test": ["pytest>=7.4", "pytest-asyncio>=0.23"]},
    long_description=LONG_DESCRIPTION,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages("src", exclude=["tests", "docs"]),
    version=VERSION,
    license="MIT",
    python_requires=">=3.11",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3.11",
        "Topic :: Home Automation",
    ],
    cmdclass={
        "verify": VerifyVersionCommand,
    },
)
