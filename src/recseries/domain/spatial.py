"""Image geometry and display colour values."""

from typing import Tuple

from pydantic import BaseModel, Field

__all__ = ["SpacingInfo", "Color"]


class SpacingInfo(BaseModel):
    """Pixel grid of a movie or of the images of a cell/vessel set.

    Two spacings are compatible only when every field is exactly equal.

    Attributes:
        num_rows: Image height in pixels
        num_cols: Image width in pixels
        pixel_size_um: Pixel (width, height) in microns
        top_left: Sensor coordinates (x, y) of the first pixel
    """

    model_config = {"frozen": True, "extra": "forbid"}

    num_rows: int = Field(..., ge=0, description="Image height in pixels")
    num_cols: int = Field(..., ge=0, description="Image width in pixels")
    pixel_size_um: Tuple[float, float] = Field((1.0, 1.0), description="Pixel width and height in microns")
    top_left: Tuple[int, int] = Field((0, 0), description="Sensor coordinates of the first pixel")

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.num_rows, self.num_cols)

    @property
    def total_pixels(self) -> int:
        return self.num_rows * self.num_cols

    def __str__(self) -> str:
        return f"{self.num_cols}x{self.num_rows}"


class Color(BaseModel):
    """RGBA display colour, one byte per channel."""

    model_config = {"frozen": True, "extra": "forbid"}

    r: int = Field(0, ge=0, le=255)
    g: int = Field(0, ge=0, le=255)
    b: int = Field(0, ge=0, le=255)
    a: int = Field(255, ge=0, le=255)

    def to_list(self) -> list:
        return [self.r, self.g, self.b, self.a]

    @classmethod
    def from_list(cls, values) -> "Color":
        r, g, b, a = (list(values) + [255])[:4]
        return cls(r=r, g=g, b=b, a=a)
