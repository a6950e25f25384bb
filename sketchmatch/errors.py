"""Exception hierarchy shared by all sketchmatch layers."""


class SketchMatchError(Exception):
    """Base class for sketchmatch errors."""

    pass


class InvalidInputError(SketchMatchError, ValueError):
    """Raised when a required buffer or template is missing."""

    pass


class OutOfBoundsError(SketchMatchError, IndexError):
    """Raised by checked pixel accessors for coordinates outside the buffer."""

    def __init__(self, x: int, y: int, width: int, height: int):
        super().__init__(
            f"Pixel ({x}, {y}) outside buffer extent {width}x{height}"
        )
        self.x = x
        self.y = y
        self.width = width
        self.height = height


class DimensionMismatchError(SketchMatchError, ValueError):
    """Raised when two buffers that must share a size do not."""

    pass
