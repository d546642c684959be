"""
Classifiers are pluggable modules that can be loaded at runtime.

Each classifier must expose a build_classifier factory in its classifier module.
"""

__all__ = [
    "prefix",
    "dpkt_http",
]
