"""Unit tests for view state transitions, filtering and pagination"""

import pytest

from fiscops.ui.state import (
    ALL,
    ViewState,
    clamp_page,
    close_record,
    filter_taxpayers,
    goto_page,
    next_page,
    open_record,
    page_count,
    paginate,
    previous_page,
    select_view,
    set_search,
    set_segment_filter,
    set_status_filter,
)


def test_page_count():
    assert page_count(120, 25) == 5
    assert page_count(126, 25) == 6
    assert page_count(0, 25) == 1


def test_paginate_last_page_and_clamping():
    items = list(range(51))

    last = paginate(items, 3, 25)
    assert last.items == [50]
    assert (last.page, last.pages, last.total) == (3, 3, 51)

    assert paginate(items, 9, 25).page == 3
    assert paginate(items, 0, 25).items == list(range(25))
    assert clamp_page(-4, 51, 25) == 1


def test_filters_and_search_reset_page():
    state = ViewState(page=4)

    assert set_search(state, "btp").page == 1
    assert set_segment_filter(state, "IFU 1").page == 1
    assert set_status_filter(state, "Critique").page == 1


def test_page_navigation_bounds():
    state = ViewState(page=5)

    assert next_page(state, 5).page == 5
    assert next_page(ViewState(page=2), 5).page == 3
    assert previous_page(ViewState(page=1)).page == 1
    assert goto_page(state, 0).page == 1


def test_select_view():
    assert select_view(ViewState(), "ifu").view == "ifu"
    with pytest.raises(ValueError):
        select_view(ViewState(), "archives")


def test_open_and_close_record():
    state = open_record(ViewState(), "T0001")
    assert state.selected_id == "T0001"
    assert close_record(state).selected_id is None


def test_transitions_do_not_mutate():
    state = ViewState()
    set_search(state, "x")
    assert state.query == ""


def test_filter_taxpayers(sample_taxpayers):
    # Case-insensitive, on name, sector or company type
    assert [t.id for t in filter_taxpayers(sample_taxpayers, ViewState(query="btp"))] == ["A"]
    assert len(filter_taxpayers(sample_taxpayers, ViewState(query="pme"))) == 5
    assert [t.id for t in filter_taxpayers(sample_taxpayers, ViewState(query="CONTRIBUABLE c"))] == ["C"]

    by_segment = filter_taxpayers(sample_taxpayers, ViewState(segment_filter="IFU 2"))
    assert [t.id for t in by_segment] == ["B", "D"]

    combined = ViewState(segment_filter="IFU 2", status_filter="En cours")
    assert [t.id for t in filter_taxpayers(sample_taxpayers, combined)] == ["D"]

    assert len(filter_taxpayers(sample_taxpayers, ViewState(segment_filter=ALL, status_filter=ALL))) == 5
