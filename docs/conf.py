# Sphinx configuration file

import os
import sys
sys.path.insert(0, os.path.abspath('../src'))

from voice_flow_orchestrator import __version__  # noqa: E402

project = 'Voice Flow Orchestrator'
copyright = '2025, Voice Flow Orchestrator contributors'
author = 'Voice Flow Orchestrator contributors'
release = __version__

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
    'sphinx_autodoc_typehints',
]

templates_path = ['_templates']
exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store']

html_theme = 'sphinx_rtd_theme'
html_static_path = ['_static']

# The SDK clients are only needed at runtime; docs build without credentials or services.
autodoc_mock_imports = [
    'neo4j',
    'notion_client',
    'twilio',
    'langgraph',
    'langchain_anthropic',
    'langchain_openai',
]

autodoc_default_options = {
    'members': True,
    'member-order': 'bysource',
    'undoc-members': False,
    'exclude-members': '__weakref__, model_config',
}
autodoc_pydantic_model_show_json = False
typehints_fully_qualified = False

# Google style only, matching the source docstrings
napoleon_google_docstring = True
napoleon_numpy_docstring = False

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'pydantic': ('https://docs.pydantic.dev/latest', None),
    'httpx': ('https://www.python-httpx.org', None),
    'neo4j': ('https://neo4j.com/docs/api/python-driver/current', None),
}
