extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.viewcode',
]

# include __init__ docstrings in class docstrings
autoclass_content = 'both'

source_suffix = '.rst'
master_doc = 'index'
project = 'effectwire'
copyright = '2026, effectwire contributors'
version = release = '0.1.0'

html_theme = 'sphinx_rtd_theme'
