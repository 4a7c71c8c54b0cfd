"""Setup configuration for treerunner."""

from setuptools import setup, find_packages

setup(
    name="treerunner",
    version="0.1.0",
    description="Test tree collection, run-mode resolution and ordered execution",
    packages=find_packages(exclude=("tests", "tests.*")),
    python_requires=">=3.12",
    install_requires=[
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
)
