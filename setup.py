"""
Setup configuration for notestudio.

This allows you to install the project with:
    pip install -e .

After installation, you can import modules like:
    from notestudio.editor.session import EditorSession
    from notestudio.pipeline.controller import PipelineController
"""

from setuptools import setup, find_packages

# Read the README for long description
with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    # -------------------------
    # Basic Package Information
    # -------------------------
    name="notestudio",
    version="0.1.0",
    description="Note event editing and an upload/analyze/generate/export pipeline for AI music services",
    long_description=long_description,
    long_description_content_type="text/markdown",

    # -------------------------
    # Package Discovery
    # -------------------------
    packages=find_packages(where=".", exclude=["tests", "tests.*"]),
    package_dir={"": "."},

    # -------------------------
    # Python Version Requirement
    # -------------------------
    python_requires=">=3.9",

    # -------------------------
    # Dependencies
    # -------------------------
    # Core dependencies (installed automatically)
    install_requires=[
        "pydantic>=2.0.0",
        "pyyaml>=6.0",
    ],

    # Optional dependencies (install with pip install -e ".[dev]")
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "flake8>=6.1.0",
            "black>=23.7.0",
            "mypy>=1.5.0",
        ],
        "test": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
    },

    # -------------------------
    # Entry Points (CLI commands)
    # -------------------------
    entry_points={
        "console_scripts": [
            # This creates a command-line tool: notestudio stats song.json
            "notestudio=notestudio.app.cli:main",
        ],
    },

    # -------------------------
    # Metadata
    # -------------------------
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Multimedia :: Sound/Audio :: MIDI",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
    keywords="midi, note editor, quantize, transpose, music generation, pipeline",
)
