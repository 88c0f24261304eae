# Sphinx configuration for the Flowtrail API reference.
import os
import sys
from datetime import date

# autodoc imports the package from the source tree
sys.path.insert(0, os.path.abspath("../src"))

import flowtrail

# -- Project information -----------------------------------------------------
project = "Flowtrail"
copyright = f"{date.today().year}, Flowtrail Contributors"
author = "Flowtrail Maintainers"
release = flowtrail.__version__
version = ".".join(release.split(".")[:2])

# -- General configuration ---------------------------------------------------
extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",  # Args:/Returns:/Raises: sections
    "sphinx.ext.viewcode",
    "sphinx_rtd_theme",
]

exclude_patterns = ["_build"]

# -- Options for HTML output -------------------------------------------------
html_theme = "sphinx_rtd_theme"
html_theme_options = {
    "navigation_depth": 3,
    "collapse_navigation": False,
}

# -- Extension configuration -------------------------------------------------
autodoc_member_order = "bysource"
autodoc_typehints = "description"
autodoc_default_options = {"members": True, "show-inheritance": True}
