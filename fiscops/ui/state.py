"""Ephemeral view state and its pure transitions"""

import math
from dataclasses import dataclass, replace
from typing import List, Optional, TypeVar

from fiscops.domain.models import DEFAULT_STATUS, Taxpayer

ALL = "Tous"
VIEWS = ["portefeuille", "segments", "plan", "ifu", "rapport"]

T = TypeVar("T")


@dataclass(frozen=True)
class ViewState:
    """What the operator is looking at; never persisted"""

    view: str = "portefeuille"
    query: str = ""
    segment_filter: str = ALL
    status_filter: str = ALL
    page: int = 1
    selected_id: Optional[str] = None


@dataclass
class Page:
    items: List[Taxpayer]
    page: int
    pages: int
    total: int


# --- transitions ---


def select_view(state: ViewState, view: str) -> ViewState:
    if view not in VIEWS:
        raise ValueError(f"Unknown view: {view}")
    return replace(state, view=view)


def set_search(state: ViewState, query: str) -> ViewState:
    return replace(state, query=query, page=1)


def set_segment_filter(state: ViewState, segment: str) -> ViewState:
    return replace(state, segment_filter=segment, page=1)


def set_status_filter(state: ViewState, status: str) -> ViewState:
    return replace(state, status_filter=status, page=1)


def next_page(state: ViewState, pages: int) -> ViewState:
    return replace(state, page=min(max(1, pages), state.page + 1))


def previous_page(state: ViewState) -> ViewState:
    return replace(state, page=max(1, state.page - 1))


def goto_page(state: ViewState, page: int) -> ViewState:
    """Render clamps the upper bound, only the lower one is enforced here"""
    return replace(state, page=max(1, page))


def open_record(state: ViewState, taxpayer_id: str) -> ViewState:
    return replace(state, selected_id=taxpayer_id)


def close_record(state: ViewState) -> ViewState:
    return replace(state, selected_id=None)


# --- filtering & pagination ---


def filter_taxpayers(taxpayers: List[Taxpayer], state: ViewState) -> List[Taxpayer]:
    """Search on name, sector or company type, then segment and status filters"""
    result = list(taxpayers)

    query = state.query.strip().lower()
    if query:
        result = [
            t for t in result
            if query in (t.name or "").lower()
            or query in (t.sector or "").lower()
            or query in (t.company_type or "").lower()
        ]
    if state.segment_filter != ALL:
        result = [t for t in result if t.segment == state.segment_filter]
    if state.status_filter != ALL:
        result = [t for t in result if (t.status or DEFAULT_STATUS) == state.status_filter]

    return result


def page_count(total: int, page_size: int) -> int:
    return max(1, math.ceil(total / page_size))


def clamp_page(page: int, total: int, page_size: int) -> int:
    return min(max(1, page), page_count(total, page_size))


def paginate(items: List[T], page: int, page_size: int) -> Page:
    """Slice one page; out-of-range pages are clamped to [1, pages]"""
    pages = page_count(len(items), page_size)
    current = clamp_page(page, len(items), page_size)
    start = (current - 1) * page_size
    return Page(items=items[start:start + page_size], page=current, pages=pages, total=len(items))
