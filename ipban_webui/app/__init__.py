"""
Application package for the IPBan Web UI API.

Subpackages:

* ``core`` - settings, logging, errors, database and scratch space access
* ``schemas`` - pydantic request/response models
* ``services`` - statistics, paging, unbanning and config editing
* ``api`` - versioned FastAPI routers
"""
