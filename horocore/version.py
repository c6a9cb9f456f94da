# horocore/version.py
from __future__ import annotations
import os

# Single place to bump the package version; pyproject.toml reads it at build time.
# Overridable via env for CI/preview builds.
VERSION = os.getenv("HOROCORE_VERSION", "0.1.0")
