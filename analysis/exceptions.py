"""
Exceptions raised by analytical engines and by the entity store.
"""


class AnalysisError(Exception):
    """Base class for failures of an analytical engine."""


class CantUnderstandError(AnalysisError):
    """The engine could not interpret the product it was given."""


class GeneralAnalysisError(AnalysisError):
    """The engine failed for a reason unrelated to its input."""


class StorageError(Exception):
    """Base class for entity store failures."""


class EntityNotFoundError(StorageError):
    """No entity of the requested type exists under the given id."""

    def __init__(self, entity_type: type, entity_id):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.__name__} {entity_id!r} not found")


class PersistenceError(StorageError):
    """The entity could not be recorded."""
