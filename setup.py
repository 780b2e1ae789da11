# setup.py
from setuptools import setup, find_packages

setup(
    name="rdbctl",
    version="0.1.0",
    description="Callback-driven relational database controller with managed failure recovery",
    packages=find_packages(
        exclude=(
            "tests",
            "tests.*",
            "docs",
            "build",
            "dist",
        )
    ),
    python_requires=">=3.10",
    install_requires=[
        "psycopg2-binary>=2.9",
    ],
    extras_require={
        "test": [
            "pytest>=7",
        ],
    },
)
