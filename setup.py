"""Setup script for melodex."""

from setuptools import setup, find_namespace_packages
from pathlib import Path

# Read README
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

setup(
    name="melodex",
    version="0.1.0",
    description="Music library scanner with content-hash deduplication and artist enrichment",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_namespace_packages(where="src", include=["melodex", "melodex.*"]),
    package_dir={"": "src"},
    package_data={"melodex.library_scanner": ["schema/*.sql"]},
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.5.0",
        "platformdirs>=4.0.0",
        "toml>=0.10.2",
        "pillow>=10.1.0",
        "filetype>=1.2.0",
        "mutagen>=1.47.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "melodex-scan=melodex.library_scanner.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: End Users/Desktop",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
    ],
    keywords="music library scanner dedup catalog",
)
