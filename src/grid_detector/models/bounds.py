from pydantic import BaseModel, ConfigDict, Field


class GridBounds(BaseModel):
    """Pixel rectangle of the grid in source-image coordinates."""

    model_config = ConfigDict(frozen=True)

    x: int = Field(ge=0)
    y: int = Field(ge=0)
    width: int = Field(ge=0)
    height: int = Field(ge=0)

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def region(self) -> tuple[int, int, int, int]:
        """(x0, y0, x1, y1) with exclusive right/bottom edges."""
        return (self.x, self.y, self.right, self.bottom)

    def fits_within(self, width: int, height: int) -> bool:
        return self.right <= width and self.bottom <= height

    def expanded(self, margin: int, width: int, height: int) -> "GridBounds":
        """Grow outward by ``margin`` pixels, clamped to a width x height image."""
        x0 = max(0, self.x - margin)
        y0 = max(0, self.y - margin)
        x1 = min(width, self.right + margin)
        y1 = min(height, self.bottom + margin)
        return GridBounds(x=x0, y=y0, width=max(0, x1 - x0), height=max(0, y1 - y0))
