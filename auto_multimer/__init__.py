#!/usr/bin/env python3

__version__ = '0.3.0'
__author__ = 'Structural Bioinformatics Core'
__email__ = 'structbio-core@example.org'

# This file is exec'd by setup.py, so we don't want to do anything that would 
# require the package to be installed already.
try:
    from .pipeline import *
except ImportError:  # "attempted relative import with no known parent package"
    pass
