"""
Mycelium - Setup Configuration

Remote module imports for multi-language execution hosts: modules hosted
at http(s) URIs are presented to the host's loader as ordinary files.

License: Apache-2.0
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

# Core dependencies
core_deps = [
    "requests>=2.32.3",
    # HTTPResponse.read1 (added in urllib3 2.2) drains remote channels
    "urllib3>=2.2.0",
    # CLI
    "click>=8.1.0",
]

# Development dependencies
dev_deps = [
    # Testing
    "pytest>=8.4.1",
    "pytest-cov>=6.2.1",
    # Code quality
    "black>=25.0.0",
    "flake8>=7.1.0",
    "mypy>=1.13.0",
]

setup(
    name="mycelium",
    version="0.1.0",

    # Package description
    description="Load modules from http(s) URIs as if they were local files",
    long_description=long_description,
    long_description_content_type="text/markdown",

    # Package discovery
    packages=find_packages(where="src"),
    package_dir={"": "src"},

    # Python version requirement
    python_requires=">=3.11",

    # Dependencies
    install_requires=core_deps,

    # Optional dependencies (extras)
    extras_require={
        "test": ["pytest>=8.4.1", "pytest-cov>=6.2.1"],
        "dev": dev_deps,
    },

    # PyPI classifiers
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: POSIX :: Linux",
        "Operating System :: MacOS",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Programming Language :: Python :: 3 :: Only",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: System :: Filesystems",
    ],

    keywords=["import", "filesystem", "http", "polyglot", "module-loader"],

    # License
    license="Apache-2.0",

    include_package_data=True,
    zip_safe=False,

    entry_points={
        "console_scripts": [
            "mycelium=mycelium.cli:main",
        ],
    },
)
