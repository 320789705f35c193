"""Infrastructure shared by the services: settings, logging, errors and file access."""
