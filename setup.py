"""
Setup script for the UniHTML service.

Allows development installation with `pip install -e .[test]`
"""

from setuptools import setup, find_packages

setup(
    name="unihtml-service",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi",
        "uvicorn",
        "pydantic>=2",
        "pydantic-settings",
        "playwright",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
    entry_points={
        "console_scripts": [
            "unihtml-service=unihtml_service.__main__:main",
        ],
    },
)
