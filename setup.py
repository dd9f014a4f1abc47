"""Setup script for sqlcopy."""

from setuptools import find_packages, setup

setup(
    name="sqlcopy",
    version="2.0.0",
    description="Copy query results between databases as batched INSERT statements",
    author="sqlcopy Team",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "sqlalchemy>=2.0",  # Database access
        "psycopg2-binary>=2.9.0",  # PostgreSQL driver
        "typer>=0.12.0",  # CLI framework
        "rich>=13.0.0",  # CLI output
        "pyyaml>=6.0",  # Configuration handling
    ],
    extras_require={
        "mysql": [
            "pymysql>=1.0.0",  # MySQL driver
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.1.0",
            "black>=22.1.0",
            "isort>=5.10.1",
            "flake8>=4.0.1",
            "mypy>=1.0.0",  # Type checking
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "sqlcopy=sqlcopy.cli.main:app",
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Database",
    ],
)
