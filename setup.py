"""Setup configuration for Media Cache."""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

setup(
    name="media-cache",
    version="0.1.0",
    author="Media Cache Team",
    description="Multi-valued media metadata records with an SQLite cache",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["mediacache", "mediacache.*"]),
    python_requires=">=3.9",
    install_requires=[
        "mutagen>=1.47.0",
        "pyyaml>=6.0",
        "prometheus-client>=0.17.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Multimedia",
        "Topic :: Database",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
    keywords="media metadata cache sqlite",
)
