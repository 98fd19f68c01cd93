"""Nirvachan: normalización y difusión de resultados electorales en vivo.

English:
    Nirvachan: normalization and broadcast of live election results.
"""

__version__ = "0.1.0"
