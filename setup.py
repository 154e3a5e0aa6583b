#!/usr/bin/env python3
"""
Setup script for the Crawl Worker runtime.

Installs the ``crawl_worker`` package together with the shared ``common``
module (logging and caching).
"""

import os

from setuptools import find_packages, setup


# Read the README file
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), "README.md")
    if os.path.exists(readme_path):
        with open(readme_path, "r", encoding="utf-8") as f:
            return f.read()
    return ""


# Read requirements from requirements.txt
def read_requirements():
    req_path = os.path.join(os.path.dirname(__file__), "requirements.txt")
    if os.path.exists(req_path):
        with open(req_path, "r", encoding="utf-8") as f:
            return [
                line.strip()
                for line in f
                if line.strip() and not line.strip().startswith("#")
            ]
    return [
        "pydantic>=2.11.7",
        "pydantic-settings>=2.10.1",
        "colorama>=0.4.6",
        "httpx>=0.28.1",
        "tenacity>=8.5.0",
        "apscheduler>=3.10.4,<4",
        "psutil>=5.9.0",
        "dependency-injector>=4.41.0",
    ]


setup(
    name="crawl-worker",
    version="1.0.0",
    description="Distributed crawl worker runtime with version management",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=["crawl_worker", "crawl_worker.*", "common", "common.*"]),
    python_requires=">=3.10",
    install_requires=read_requirements(),
    extras_require={
        "dev": [
            "pytest>=8.4.1",
            "pytest-asyncio>=0.23.0",
            "black>=23.0.0",
            "isort>=5.12.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "crawl-worker=crawl_worker.main:run",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    include_package_data=True,
    zip_safe=False,
)
