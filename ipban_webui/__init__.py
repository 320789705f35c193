"""
Top-level package for the IPBan Web UI API.

All functionality lives in submodules under ``app``; import the ASGI
application from ``ipban_webui.app.main``.
"""

__all__ = []
