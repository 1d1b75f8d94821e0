"""
Setup script for the Lychee Meta Tool
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text() if readme_path.exists() else ""

setup(
    name="lychee-meta-tool",
    version="1.0.0",
    description="Find Lychee photos with generated titles and assign titles, descriptions and albums",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "Topic :: Multimedia :: Graphics",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
    install_requires=[
        "Flask>=2.3.0",
        "flask-cors>=4.0.0",
        "SQLAlchemy>=2.0.0",
        "PyMySQL>=1.1.0",
        "psycopg2-binary>=2.9.0",
        "click>=8.1.0",
        "PyYAML>=6.0",
        "colorlog>=6.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "lychee-meta=lycheemeta.cli:main",
        ],
    },
    include_package_data=True,
)
