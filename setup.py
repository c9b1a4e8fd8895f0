"""Setup configuration for mixmaster."""

from setuptools import setup, find_packages

setup(
    name="mixmaster",
    version="1.0.0",
    description="Build-trigger ingestion gateway writing job files for a build executor",
    author="Your Name",
    packages=find_packages(include=["mixmaster", "mixmaster.*"]),
    install_requires=[
        "click>=8.1.7",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "mixmaster=mixmaster.cli:cli",
        ],
    },
    python_requires=">=3.8",
)
