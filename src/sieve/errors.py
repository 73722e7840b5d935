"""Exception hierarchy shared by the filter stages and the batch engine."""

from __future__ import annotations


class SieveError(Exception):
    """Base class for all vertex-sieve errors."""

    pass


class ConfigurationError(SieveError, ValueError):
    """Raised when the filter configuration cannot be turned into a FilterSpec.

    Always raised before the first vertex is processed.
    """

    pass


class DataIntegrityError(SieveError):
    """Raised when the routed message stream contradicts the graph invariants."""

    pass


class DuplicateVertexError(DataIntegrityError):
    """More than one vertex record was routed to the same destination id."""

    def __init__(self, vertex_id: int) -> None:
        super().__init__(f"Vertex id {vertex_id} appears more than once in the input graph")
        self.vertex_id = vertex_id


class MisroutedMessageError(DataIntegrityError):
    """A vertex record arrived at a destination other than its own id."""

    def __init__(self, destination_id: int, vertex_id: int) -> None:
        super().__init__(f"Vertex {vertex_id} was routed to destination {destination_id}")
        self.destination_id = destination_id
        self.vertex_id = vertex_id


class IllegalMessageError(SieveError):
    """A message that is neither a vertex payload nor a removal notice."""

    pass


class GraphFormatError(SieveError):
    """A serialized graph record could not be decoded."""

    pass
