#!/usr/bin/env python3
"""setup.py for censo-lookup."""

from setuptools import find_packages, setup

# Read version from __version__.py
version_dict = {}
with open("src/censo_lookup/__version__.py") as fp:
    exec(fp.read(), version_dict)

setup(
    name="censo-lookup",
    version=version_dict["__version__"],
    description="Cached, load-balanced census registration lookups over spreadsheet relays",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        # Core dependencies
        "pydantic>=2.0",
        "aiohttp",
        "tenacity",
        "pyyaml",
        # CLI
        "click",
        "rich",
    ],
    extras_require={
        "test": [
            "pytest>=6.0",
            "pytest-asyncio",
        ],
        "dev": [
            "pytest>=6.0",
            "pytest-asyncio",
            "pytest-cov",
        ]
    },
    entry_points={
        "console_scripts": [
            "censo-lookup=censo_lookup.cli.run:main",
        ],
    },
)
