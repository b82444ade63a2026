# core/page_layout.py
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence
from model.layout import Line, PageLayout, TextItem


@dataclass(frozen=True)
class BoundingBox:
    """Page-unit box; y grows downward."""

    x_min: float
    x_max: float
    y_top: float
    y_bottom: float

    @property
    def center_x(self) -> float:
        return (self.x_min + self.x_max) / 2

    @property
    def center_y(self) -> float:
        return (self.y_top + self.y_bottom) / 2


@dataclass(frozen=True)
class PercentBox:
    x: float
    y: float
    width: float
    height: float


def items_bbox(items: Iterable[TextItem]) -> Optional[BoundingBox]:
    """
    Tight box around `items`. Item `y` is a baseline, so the glyph top is
    `y - height` and the bottom is `y`.
    """
    items = list(items)
    if not items:
        return None
    return BoundingBox(
        x_min=min(it.x for it in items),
        x_max=max(it.x + it.width for it in items),
        y_top=min(it.y - it.height for it in items),
        y_bottom=max(it.y for it in items),
    )


def line_bbox(line: Line) -> BoundingBox:
    return BoundingBox(
        x_min=line.x,
        x_max=line.x + line.width,
        y_top=line.y - line.height,
        y_bottom=line.y,
    )


def to_percent(box: BoundingBox, page: PageLayout) -> PercentBox:
    """Center point and size of `box` as percentages of the page."""
    return PercentBox(
        x=box.center_x / page.width * 100,
        y=box.center_y / page.height * 100,
        width=(box.x_max - box.x_min) / page.width * 100,
        height=(box.y_bottom - box.y_top) / page.height * 100,
    )


def is_usable(page: PageLayout) -> bool:
    return page.width > 0 and page.height > 0


def page_by_number(pages: Sequence[PageLayout], page_num: int) -> Optional[PageLayout]:
    return next((p for p in pages if p.pageNum == page_num), None)


def line_items(page: PageLayout, line: Line) -> List[TextItem]:
    return [page.items[i] for i in line.itemIndices if 0 <= i < len(page.items)]


def build_lines(items: Sequence[TextItem]) -> List[Line]:
    """
    Group positioned items into reading-order lines. Items whose baselines sit
    within half a glyph height of the running line baseline join that line.
    """
    order = sorted(
        (i for i, it in enumerate(items) if it.text.strip()),
        key=lambda i: (items[i].y, items[i].x),
    )
    groups: List[List[int]] = []
    baseline = 0.0
    for i in order:
        it = items[i]
        if groups:
            ref = items[groups[-1][0]]
            tolerance = max(it.height, ref.height, 1.0) / 2
            if abs(it.y - baseline) <= tolerance:
                groups[-1].append(i)
                continue
        groups.append([i])
        baseline = it.y

    lines: List[Line] = []
    for group in groups:
        group.sort(key=lambda i: items[i].x)
        members = [items[i] for i in group]
        box = items_bbox(members)
        lines.append(
            Line(
                text=" ".join(m.text.strip() for m in members),
                x=box.x_min,
                y=box.y_bottom,
                width=box.x_max - box.x_min,
                height=box.y_bottom - box.y_top,
                itemIndices=group,
            )
        )
    return lines
