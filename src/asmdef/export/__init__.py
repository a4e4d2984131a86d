"""asmdef export: source text from token streams.

Public API::

    from asmdef.export import to_listing
    text = to_listing(tokens, machine.labels)
"""

from .listing import to_listing

__all__ = ["to_listing"]
