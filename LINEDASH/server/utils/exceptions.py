from __future__ import annotations

from fastapi import status


###############################################################################
class LineDashError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


###############################################################################
class InvalidIdentifier(LineDashError):
    default_message = (
        "Only alphanumeric characters and underscores are allowed in table names"
    )


###############################################################################
class MissingTable(LineDashError):
    default_message = "Parameter 'table' is required."


###############################################################################
class InvalidId(LineDashError):
    default_message = "Parameter 'id' must be a number."


###############################################################################
class MissingUpdates(LineDashError):
    default_message = "Parameter 'updates' is required."


###############################################################################
class InvalidComment(LineDashError):
    default_message = "Field 'comment' must be a string or null."


###############################################################################
class InvalidFlag(LineDashError):
    default_message = "Field 'needtosend' must be 0 or 1."


###############################################################################
class NoFieldsProvided(LineDashError):
    default_message = "No valid fields provided for update."


###############################################################################
class RowNotFound(LineDashError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Row not found."


###############################################################################
class LineNotFound(LineDashError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Line not found."
