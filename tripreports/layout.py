"""
Fixed-size page layout for report documents.

Rendering is split in two passes. Blocks are measured first and placed onto
pages here, without touching any drawing library. Footers need the total page
count, so they are stamped only after every block has been placed.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass
class Block:
    height: float
    payload: Any = None
    kind: str = "row"
    headed: bool = False  # carries its own table header


@dataclass
class Placement:
    block: Block
    y: float


@dataclass
class Page:
    number: int
    placements: List[Placement] = field(default_factory=list)
    footer: Optional["Footer"] = None

    @property
    def blocks(self) -> List[Block]:
        return [p.block for p in self.placements]


@dataclass
class Footer:
    print_date: str
    page_number: int
    total_pages: int

    @property
    def left(self) -> str:
        return f"Print Date: {self.print_date}"

    @property
    def right(self) -> str:
        return f"Page {self.page_number}/{self.total_pages}"


def paginate(blocks: List[Block], max_page_height: float,
             repeat_header: Optional[Block] = None) -> List[Page]:
    """Place blocks top to bottom, opening a new page when the next one does not fit.

    A block fits when ``y + height <= max_page_height``. Blocks are never
    split; one taller than a page is put alone on a fresh page.

    ``repeat_header`` opens every page after the first, except when the block
    starting that page is ``headed`` or would no longer fit beneath it.
    """
    pages: List[Page] = []
    page = Page(number=1)
    y = 0.0
    for block in blocks:
        if page.placements and y + block.height > max_page_height:
            pages.append(page)
            page = Page(number=len(pages) + 1)
            y = 0.0
            if (repeat_header is not None and not block.headed
                    and repeat_header.height + block.height <= max_page_height):
                page.placements.append(Placement(repeat_header, y))
                y += repeat_header.height
        page.placements.append(Placement(block, y))
        y += block.height
    pages.append(page)
    return pages


def stamp_footers(pages: List[Page], print_date: str) -> List[Page]:
    """Second pass: attach "Page N/Total" once the page count is final."""
    for number, page in enumerate(pages, start=1):
        page.footer = Footer(print_date=print_date, page_number=number, total_pages=len(pages))
    return pages
