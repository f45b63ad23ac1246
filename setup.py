"""
Setup script for dokcsr

This setup.py is primarily for compatibility. The main configuration is in pyproject.toml.
"""

from pathlib import Path
from setuptools import setup


# Read version from src/dokcsr/__init__.py
def get_version():
    version_file = Path("src/dokcsr/__init__.py")
    if version_file.exists():
        for line in version_file.read_text().splitlines():
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip('"').strip("'")
    return "0.1.0"


setup(
    version=get_version(),
    zip_safe=True,  # Pure Python, no shared libraries
)
