#!/usr/bin/env python3
"""Setup script for the Pulumi LSP client - editor integration for pulumi-lsp."""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text() if (this_directory / "README.md").exists() else ""

# Read requirements from requirements.txt
def read_requirements():
    requirements_file = this_directory / "requirements.txt"
    requirements = []
    if requirements_file.exists():
        with open(requirements_file, 'r') as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#'):
                    requirements.append(line)
    return requirements

setup(
    name="pulumi-lsp-client",
    version="0.1.0",
    description="Editor client for the Pulumi YAML language server",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Pulumi",
    url="https://github.com/pulumi/pulumi-lsp",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    include_package_data=True,
    # A bundled server binary may be shipped inside the package directory
    package_data={"pulumi_lsp_client": ["pulumi-lsp", "pulumi-lsp.exe"]},
    install_requires=read_requirements(),
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
        ],
    },
    python_requires=">=3.9",
    entry_points={
        "console_scripts": [
            "pulumi-lsp-client=pulumi_lsp_client.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Text Editors",
    ],
    keywords="pulumi lsp language-server yaml editor",
    project_urls={
        "Bug Reports": "https://github.com/pulumi/pulumi-lsp/issues",
        "Source": "https://github.com/pulumi/pulumi-lsp",
    },
)
