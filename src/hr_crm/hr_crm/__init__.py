"""HR/CRM back-office package.

The package is organized by feature modules (companies, users, tasks, leads, ...)
with a thin Flask controller layer on top of service/repository layers.
"""

__version__ = "1.0.0"
