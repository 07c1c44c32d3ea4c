"""A setuptools based setup module.

See:
https://packaging.python.org/en/latest/distributing.html
https://github.com/pypa/sampleproject
"""
import os

from setuptools import find_packages, setup

# pylint: disable=redefined-builtin

here = os.path.abspath(os.path.dirname(__file__))

with open(os.path.join(here, "README.rst"), encoding="utf-8") as fid:
    long_description = fid.read()

with open(os.path.join(here, "requirements.txt"), encoding="utf-8") as fid:
    install_requires = [line for line in fid.read().splitlines() if line.strip()]

setup(
    name="ua-nodeset-codegen",
    version="0.1.0",
    description=(
        "Generate open62541 server stubs from OPC UA NodeSet2 information models."
    ),
    long_description=long_description,
    author="The ua-nodeset-codegen contributors",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    license="License :: OSI Approved :: MIT License",
    keywords="opc ua nodeset open62541 code generation industry 4.0 industrie i4.0",
    packages=find_packages(exclude=["tests", "tests.*", "continuous_integration"]),
    install_requires=install_requires,
    extras_require={
        "dev": [
            "black==24.8.0",
            "mypy==1.11.2",
            "pylint==3.2.7",
            "coverage>=7,<8",
        ],
    },
    package_data={"ua_nodeset_codegen": ["py.typed", "templates/*.j2"]},
    data_files=[(".", ["LICENSE", "README.rst", "requirements.txt"])],
    entry_points={
        "console_scripts": [
            "ua-nodeset-codegen=ua_nodeset_codegen.main:entry_point",
        ]
    },
)
