"""
ContentPack -- verified content-pack sync for a local asset cache.

A tiny bootstrap record points at the newest pack. The pack carries a
manifest, the asset blobs and a handful of links. Nothing lands in the
cache until its SHA-256 matches the manifest.
"""

import os

__version__ = "0.1.0"

CONTENTPACK_HOME = os.environ.get("CONTENTPACK_HOME", "~/.contentpack")
