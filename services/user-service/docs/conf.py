"""Sphinx configuration for the User Service API reference."""

from __future__ import annotations

import os
import sys
from datetime import datetime

SERVICE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SCHEMAS_DIR = os.path.abspath(os.path.join(SERVICE_DIR, "..", "..", "libs", "python"))
sys.path[:0] = [SERVICE_DIR, SCHEMAS_DIR]

from app.config import Settings  # noqa: E402

project = "User Service"
author = "Platform Team"
copyright = f"{datetime.now():%Y}, {author}"
release = Settings.version
version = ".".join(release.split(".")[:2])

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.intersphinx",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
    "sphinx_autodoc_typehints",
]

root_doc = "index"
autodoc_typehints = "description"
autodoc_member_order = "bysource"
autodoc_default_options = {"members": True, "undoc-members": False, "show-inheritance": True}
# docs builds do not install the database driver
autodoc_mock_imports = ["psycopg", "psycopg_pool"]

# docstrings across the service use the numpy "Raises" section style
napoleon_google_docstring = False
napoleon_numpy_docstring = True

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "httpx": ("https://www.python-httpx.org", None),
    "redis": ("https://redis.readthedocs.io/en/stable", None),
    "pydantic": ("https://docs.pydantic.dev/latest", None),
}

exclude_patterns: list[str] = ["_build"]
html_theme = "alabaster"
html_title = f"{project} {release}"
