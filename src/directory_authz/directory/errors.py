"""
directory_authz.directory.errors

Failure types of the directory collaborator.

"Not found" is not an error: lookups return `None` for missing entities. These exceptions
signal that the directory could not answer at all.
"""

from __future__ import annotations


class DirectoryError(Exception):
    pass


class DirectoryUnavailableError(DirectoryError):
    """Transport failure, timeout, 5xx, or failed service login."""


class DirectoryResponseError(DirectoryError):
    """The directory answered, but with an error or a payload we cannot interpret."""
