"""
Setup configuration for Option Position Matcher

Install in development mode:
    pip install -e .

Install for production:
    pip install .
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / 'README.md'
long_description = ""
if readme_file.exists():
    long_description = readme_file.read_text(encoding='utf-8')

setup(
    name="option-strategy-matcher",
    version="1.0.0",
    description="Immutable indexed option position collections for strategy matching",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Options Backtester Team",
    author_email="info@optionsbacktester.com",
    url="https://github.com/yourusername/option-strategy-matcher",
    license="MIT",

    packages=find_packages(exclude=["tests", "tests.*"]),

    # Core dependencies
    install_requires=[
        "pandas>=2.3.3",
        "PyYAML>=6.0",
    ],

    # Development dependencies
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
        ],
        "test": [
            "pytest>=7.4.0",
            "pytest-cov>=4.0.0",
        ],
    },

    # Python version requirement
    python_requires=">=3.9",

    # Package classifiers
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Financial and Insurance Industry",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Office/Business :: Financial :: Investment",
    ],

    # Keywords for package discovery
    keywords="options trading strategy matching positions derivatives",

    # Include package data
    include_package_data=True,
    package_data={
        "optionmatcher": ["py.typed"],  # PEP 561 type hint marker
    },

    # Zip safe flag
    zip_safe=False,
)
