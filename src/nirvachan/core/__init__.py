"""Núcleo de claves canónicas, normalización e índice. / Canonical keys, normalization and index core."""
