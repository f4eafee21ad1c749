"""Pure domain utilities: tokens, slugs, content sniffing.

These modules are free of HTTP concerns so they can be unit-tested on their
own and reused outside request handlers.
"""
__all__ = ["tokens", "slugs", "sniff"]
