"""
Exceptions raised by the record store and its persistence slots.

Validation problems are not exceptions: they are returned as
ValidationResult / FormValidation objects (see app.services.validation).
"""

SAVE_FAILED_MESSAGE = "Error saving data. Please try again."


class StorageError(Exception):
    """
    A read or write against a persistence slot failed.

    Read failures never reach callers of RecordStore.load(); they are logged
    and the collection degrades to empty. Write failures propagate with a
    user-visible message. When the failed write followed an add or update,
    `record` holds the record that remains in memory.
    """

    def __init__(self, message: str = SAVE_FAILED_MESSAGE, record=None):
        super().__init__(message)
        self.message = message
        self.record = record
