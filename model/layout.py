# model/layout.py
from pydantic import BaseModel, ConfigDict, Field


class TextItem(BaseModel):
    """
    One positioned run of text on a rendered page. `y` is the glyph baseline
    measured top-down in the same units as the page width/height.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str = Field(alias="str")
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0


class Line(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    itemIndices: list[int] = Field(default_factory=list)


class PageLayout(BaseModel):
    model_config = ConfigDict(frozen=True)

    pageNum: int = Field(ge=1)
    width: float
    height: float
    items: list[TextItem] = Field(default_factory=list)
    lines: list[Line] = Field(default_factory=list)
