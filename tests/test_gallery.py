import pytest

from atelier.models.painting import PaintingRecord
from atelier.services.gallery import (
    GalleryFilter,
    PageWindow,
    apply_filters,
    availability_is,
    build_home_sections,
    build_predicates,
    build_shop_listing,
    filter_paintings,
    genre_is,
    matches_text,
)


@pytest.fixture
def records(make_row):
    return [
        PaintingRecord.model_validate(make_row(id="a", title="Morning Fog", genre="Landscape", year=2023)),
        PaintingRecord.model_validate(make_row(id="b", title="Red Square", genre="Abstract", medium="Acrylic", sold=True)),
        PaintingRecord.model_validate(make_row(id="c", title="Study in Blue", genre=None, description="Cold harbour water")),
        PaintingRecord.model_validate(make_row(id="d", title="Unfinished Field", genre="Landscape", in_progress=True, price=None)),
        PaintingRecord.model_validate(make_row(id="e", title="Gift", genre="Landscape", featured=True, price="Enquire", year=2022)),
    ]


def _ids(paintings):
    return [p.id for p in paintings]


def test_all_means_no_genre_filter():
    assert GalleryFilter(genre="All").genre is None
    assert GalleryFilter(genre="  ").genre is None
    assert build_predicates(GalleryFilter()) == []


def test_genre_filter(records):
    assert _ids(filter_paintings(records, GalleryFilter(genre="Landscape"))) == ["a", "d", "e"]


def test_uncategorized_matches_records_without_genre(records):
    assert _ids(apply_filters(records, [genre_is("Uncategorized")])) == ["c"]


def test_availability_filter(records):
    assert _ids(filter_paintings(records, GalleryFilter(availability="Sold"))) == ["b"]
    assert _ids(filter_paintings(records, GalleryFilter(availability="available"))) == ["a", "c", "d", "e"]


def test_search_is_case_insensitive_over_title_description_and_medium(records):
    assert _ids(filter_paintings(records, GalleryFilter(search="HARBOUR"))) == ["c"]
    assert _ids(filter_paintings(records, GalleryFilter(search="acrylic"))) == ["b"]
    assert _ids(filter_paintings(records, GalleryFilter(search="blue"))) == ["c"]


def test_filters_combine_with_and(records):
    flt = GalleryFilter(genre="Landscape", availability="available", in_progress=False, year=2022)

    assert _ids(filter_paintings(records, flt)) == ["e"]


def test_filters_are_idempotent_and_order_independent(records):
    predicates = [availability_is("available"), genre_is("Landscape"), matches_text("finished")]

    once = apply_filters(records, predicates)
    twice = apply_filters(once, predicates)
    reversed_order = apply_filters(records, list(reversed(predicates)))

    assert _ids(once) == _ids(twice) == _ids(reversed_order) == ["a", "d", "e"]


def test_filtering_preserves_input_order(records):
    shuffled = [records[4], records[0], records[3]]

    assert _ids(filter_paintings(shuffled, GalleryFilter(genre="Landscape"))) == ["e", "a", "d"]


def test_page_window_load_more_and_show_less(make_row):
    paintings = [PaintingRecord.model_validate(make_row(id=f"p{i}")) for i in range(30)]
    window = PageWindow()

    assert len(window.take(paintings)) == 12
    assert window.has_more(30)

    window.load_more()
    window.load_more()
    assert len(window.take(paintings)) == 30
    assert not window.has_more(30)

    window.show_less()
    assert window.visible == 12


def test_home_sections(records):
    sections = build_home_sections(records, GalleryFilter(genre="Landscape"))

    assert _ids(sections["featured"].paintings) == ["e"]
    assert _ids(sections["all"].paintings) == ["a", "e"]
    assert _ids(sections["in_progress"].paintings) == ["d"]


def test_featured_section_ignores_visitor_filters(records):
    sections = build_home_sections(records, GalleryFilter(genre="Abstract"))

    assert _ids(sections["featured"].paintings) == ["e"]
    assert _ids(sections["all"].paintings) == ["b"]
    assert sections["in_progress"].total == 0


def test_home_sections_paginate_independently(make_row):
    paintings = [PaintingRecord.model_validate(make_row(id=f"f{i}")) for i in range(15)]
    paintings += [PaintingRecord.model_validate(make_row(id=f"w{i}", in_progress=True)) for i in range(3)]

    sections = build_home_sections(paintings, GalleryFilter(), all_window=PageWindow(visible=12))

    assert sections["all"].shown == 12
    assert sections["all"].total == 15
    assert sections["all"].has_more is True
    assert sections["in_progress"].shown == 3
    assert sections["in_progress"].has_more is False


def test_shop_lists_available_priced_finished_works(records):
    assert _ids(build_shop_listing(records)) == ["a", "c", "e"]


def test_sold_filter_returns_only_sold_records(make_row):
    sold = PaintingRecord.model_validate(make_row(id="s", sold=True))
    available = PaintingRecord.model_validate(make_row(id="u", sold=False))

    assert filter_paintings([sold, available], GalleryFilter(availability="sold")) == [sold]


def test_each_page_extends_the_previous_one(make_row):
    paintings = [PaintingRecord.model_validate(make_row(id=f"p{i}")) for i in range(40)]
    window = PageWindow()

    previous = window.take(paintings)
    while window.has_more(len(paintings)):
        window.load_more()
        current = window.take(paintings)
        assert current[: len(previous)] == previous
        previous = current
    assert len(previous) == 40
