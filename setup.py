# noqa: D100
import re

from setuptools import find_packages, setup

with open("pgsnip/__version__.py", "r") as fh:
    match = re.search(r'^__version__ = "([^"]+)"', fh.read(), re.MULTILINE)
assert match, "setup.py: no __version__ in pgsnip/__version__.py"


def read_requirements(path: str):  # noqa: D103
    runtime, tests = [], []
    with open(path, "r") as fh:
        for line in fh:
            requirement, _, tag = line.partition("#")
            if requirement.strip():
                (tests if tag.strip() == "test" else runtime).append(requirement.strip())
    return runtime, tests


install_requires, tests_require = read_requirements("requirements.txt")

with open("README.rst", "r") as fh:
    long_description = fh.read()

setup(
    name="pgsnip",
    version=match.group(1),
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"pgsnip.catalog": ["snippets.md"]},
    description="PostgreSQL administration snippets with tooling to list, render and run them",
    long_description=long_description,
    long_description_content_type="text/x-rst",
    license="ISC License",
    install_requires=install_requires,
    python_requires=">=3.10.0",
    extras_require={"tests": tests_require, "psycopg": ["psycopg>=3.1", "psycopg-pool>=3.1"]},
    entry_points={"console_scripts": ["pgsnip=pgsnip.cli:main"]},
    classifiers=[
        "Topic :: Database",
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
