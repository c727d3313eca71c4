#!/usr/bin/env python
from setuptools import setup, find_packages

with open("README.md", "r", encoding='utf-8') as fh:
    long_description = fh.read()

setup(
    name="ecs-deploy",
    version="1.0.0",
    description="Rolling deploys with automatic rollback for single container AWS ECS services",
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords=['aws', 'ecs', 'docker', 'devops', 'deploy'],
    classifiers=[
       "Programming Language :: Python :: 3"
    ],
    packages=find_packages(),
    include_package_data=True,
    install_requires=[
        "boto3 >= 1.17",
        "cement>=3.0.0",
        "click >= 6.7",
        "colorlog",
        "jsondiff2 >= 1.2.3",
        "PyYAML >= 5.1",
        "requests >= 2.18.4",
        "tabulate >= 0.8.1",
        "tzlocal >= 4.0.1",
    ],
    extras_require={
        'test': [
            "mock",
            "pytest",
            "testfixtures",
        ]
    },
    entry_points={'console_scripts': [
        'ecs-deploy = ecsdeploy.main:main',
    ]}
)
