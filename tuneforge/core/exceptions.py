# Copyright (c) US Inc. All rights reserved.
"""Error taxonomy shared by the services"""

from typing import List, Optional


class TuneforgeError(Exception):
    """Base error carrying a machine-readable code and a user-facing message."""

    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None, user_message: Optional[str] = None):
        super().__init__(message)
        if error_code:
            self.error_code = error_code
        self.user_message = user_message or message


class DatasetValidationError(TuneforgeError):
    """Malformed or empty dataset."""
    error_code = "DATASET_INVALID"


class ConfigurationError(TuneforgeError):
    """Missing remote host, credential or model configuration. Never retried."""
    error_code = "CONFIGURATION_ERROR"


class TransportError(TuneforgeError):
    """Connection or authentication failure talking to the remote host."""
    error_code = "REMOTE_TRANSPORT_ERROR"


class CommandError(TuneforgeError):
    """Remote training process exited with a non-zero code."""
    error_code = "REMOTE_COMMAND_FAILED"

    def __init__(self, exit_code: int, output: str = "", message: Optional[str] = None):
        super().__init__(message or f"Training failed: code {exit_code}")
        self.exit_code = exit_code
        self.output = output


class ParseError(TuneforgeError):
    """Generated output could not be turned into a record list."""
    error_code = "UNPARSEABLE_OUTPUT"


class GenerationError(TuneforgeError):
    """Transport or quota failure from the generative model."""
    error_code = "GENERATION_FAILED"


class BatchRejectedError(TuneforgeError):
    """Submission refused before any state was touched."""
    error_code = "INELIGIBLE_DOCUMENTS"

    def __init__(self, message: str, document_ids: Optional[List[str]] = None, error_code: Optional[str] = None):
        super().__init__(message, error_code=error_code)
        self.document_ids = document_ids or []


class NotFoundError(TuneforgeError):
    """Requested record does not exist or belongs to someone else."""
    error_code = "NOT_FOUND"


class DocumentNotFoundError(NotFoundError):
    error_code = "DOCUMENT_NOT_FOUND"


class DocumentBusyError(TuneforgeError):
    """Document is part of a running training and cannot be changed."""
    error_code = "DOCUMENT_BUSY"
