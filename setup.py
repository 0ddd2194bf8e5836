"""Setup configuration for Spotibuds Media API."""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

setup(
    name="spotibuds-media-api",
    version="1.0.0",
    author="Spotibuds Team",
    description="Music media API: two-tier image cache, range-aware audio streaming, catalog reads",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.110.0",
        "starlette>=0.36.0",
        "uvicorn>=0.27.0",
        "pydantic>=2.0.0",
        "redis>=5.0.0",
        "pymongo>=4.10.0",
        "boto3>=1.34.0",
        "botocore>=1.34.0",
        "anyio>=4.0.0",
        "prometheus-client>=0.19.0",
        "psutil>=5.9.0",
        "pyyaml>=6.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
            "pytest-cov>=4.1.0",
            "httpx>=0.27.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "spotibuds-api=spotibuds.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Framework :: FastAPI",
        "Topic :: Multimedia :: Sound/Audio",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="music media streaming cache fastapi redis mongodb",
)
