#!/usr/bin/env python
import re

from setuptools import find_packages, setup

# Importing longterm would need the installed dependencies
with open("longterm/version.py", "r") as f:
    VERSION = ".".join(
        re.search(r"^VERSION = \((\d+), (\d+), (\d+)\)", f.read(), re.M).groups()
    )
INSTALL_REQUIREMENTS = [
    "Django>=4.2",
    "bagit>=1.8",
    "celery[redis]>=5.3",
    "django-redis>=5.2",
    "psycopg2-binary>=2.9",
    "requests>=2.31",
    "sentry-sdk>=1.40",
    "structlog>=23.1",
    "tenacity>=8.2",
]
EXTRAS_REQUIREMENTS = {"test": ["coverage", "pytest", "pytest-django"]}
SCRIPTS = ["manage.py"]
DESCRIPTION = "Ingest service for the long-term archive of OCR-D packages"
CLASSIFIERS = """\
Environment :: Web Environment
Framework :: Django
Programming Language :: Python
Programming Language :: Python :: 3.10
""".splitlines()

with open("README.md", "r") as f:
    LONG_DESCRIPTION = f.read()


setup(
    name="longterm-archive",
    version=VERSION,
    description=DESCRIPTION,
    long_description=LONG_DESCRIPTION,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["*.tests", "*.tests.*"]),
    include_package_data=True,
    scripts=SCRIPTS,
    install_requires=INSTALL_REQUIREMENTS,
    extras_require=EXTRAS_REQUIREMENTS,
    python_requires=">=3.10",
    classifiers=CLASSIFIERS,
)
