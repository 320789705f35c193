"""
Service layer abstraction.

Each service encapsulates the logic for one resource (the IPBan
database, the configuration document) so that API handlers stay thin.
"""
