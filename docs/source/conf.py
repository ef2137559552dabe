# Sphinx configuration for the ADAS mode pipeline API docs.
#
# Build with:  sphinx-build -b html docs/source docs/build

import os
import sys

# Project root, so autodoc can import bus / sim / api / ui
sys.path.insert(0, os.path.abspath("../.."))

project = 'ADAS Mode Pipeline'
copyright = '2026, ADAS Team'
author = 'ADAS Team'
release = '0.1'

extensions = [
    "sphinx.ext.autodoc",    # generate docs from docstrings
    "sphinx.ext.napoleon",   # NumPy-style and Google-style sections
    "sphinx.ext.viewcode",
    "sphinx_rtd_dark_mode"
]

autodoc_default_options = {
    "members": True,
    "undoc-members": False,
    "show-inheritance": True,
}
autodoc_member_order = "bysource"
napoleon_numpy_docstring = True
napoleon_google_docstring = True

templates_path = ['_templates']
exclude_patterns = ["test_*"]

html_theme = "sphinx_rtd_theme"
default_dark_mode = True
html_static_path = ['_static']

# The dashboard needs a display; the server stack is optional for docs.
autodoc_mock_imports = ["pygame", "uvicorn"]
