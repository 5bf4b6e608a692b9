'''
Logging tools for hact.

All modules log through children of the "hact" logger. By default messages
at INFO and above are printed to STDOUT.

Call verbose() to see every iteration of the solvers, or quiet() to only see
warnings.
'''

import logging
import sys

logger = logging.getLogger("hact")

if not logger.handlers:
    _handler = logging.StreamHandler(sys.stdout)
    _handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(_handler)
    logger.setLevel(logging.INFO)


def verbose():
    logger.setLevel(logging.DEBUG)


def quiet():
    logger.setLevel(logging.WARNING)
