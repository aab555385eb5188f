import logging

__version__ = "0.1.0"

# Library default, the CLI configures handlers
logging.getLogger('fancurve').addHandler(logging.NullHandler())
