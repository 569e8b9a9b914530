#!/usr/bin/python3

from setuptools import setup

version = '0.3.0'

setup(
    name = 'ldfile',
    version = version,
    description = 'Reader for MoTeC .ld telemetry log files',
    packages = ['ldfile'],
    python_requires = '>=3.8',
    install_requires = ['numpy'],
    extras_require = {'test': ['pytest']},
    include_package_data=False,
)
