"""Exceptions raised by world generation and queries."""


class WorldGenerationError(Exception):
    """Base class for world generation failures."""


class ConfigurationError(WorldGenerationError, ValueError):
    """Invalid generation parameters (non-positive sizes, too many seeds)."""


class DisconnectedPartitionError(ConfigurationError):
    """Region growing stalled because the cell graph is not connected."""

    def __init__(self, unassigned: int):
        self.unassigned = unassigned
        super().__init__(
            f"Region growing stalled with {unassigned} unreachable cells; "
            "the spatial partition is disconnected"
        )


class UnknownCellError(WorldGenerationError, IndexError):
    """A cell id outside the spatial partition was queried."""

    def __init__(self, cell_id, cell_count: int):
        self.cell_id = cell_id
        self.cell_count = cell_count
        super().__init__(f"Unknown cell id {cell_id} (partition has {cell_count} cells)")
