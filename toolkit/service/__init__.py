"""Request-facing helpers built on Starlette requests and responses."""
__all__ = ["files", "uploads", "jsonio", "remote"]
