from datetime import date, datetime, timedelta, timezone

import pytest

from conftest import FakeSession, realty_feed, realty_offer
from placements.errors import FormatError
from placements.feeds.realty import RealtyFeed, parse_generation_date
from placements.models import OptionalInt

URL = "https://example.com/realty.xml"


def fetched(offers, **kwargs):
    feed = RealtyFeed(URL, session=FakeSession(realty_feed(offers, **kwargs).encode("utf-8")))
    feed.get()
    return feed


def check(offers):
    return fetched(offers).check()


def clean(n=10):
    return [realty_offer(i) for i in range(n)]


def test_decode_ignores_default_namespace():
    feed = fetched(clean(2))

    offer = feed.data.offers[1]
    assert offer.internal_id == "offer-1"
    assert offer.image_tags == ["plan", "floor-plan", ""]
    assert offer.location.country == "Россия"
    assert offer.price.value == pytest.approx(5000000)
    assert offer.area.unit == "кв. м"
    assert offer.yandex_house_id == OptionalInt(value=456, valid=True)


@pytest.mark.parametrize("raw, expected", [
    ("42", OptionalInt(value=42, valid=True)),
    ("undefined", OptionalInt(valid=False)),
    (None, OptionalInt(valid=False)),
])
def test_yandex_house_id(raw, expected):
    feed = fetched([realty_offer(1, **{"yandex-house-id": raw})])
    assert feed.data.offers[0].yandex_house_id == expected


def test_bad_yandex_house_id():
    feed = RealtyFeed(URL, session=FakeSession(
        realty_feed([realty_offer(1, **{"yandex-house-id": "abc"})]).encode("utf-8")))
    with pytest.raises(FormatError):
        feed.get()


def test_header_wins_over_generation_date():
    feed = fetched(clean(2))
    assert feed.last_modified == datetime(2015, 10, 21, 7, 28, tzinfo=timezone.utc)


def test_generation_date_fallback():
    feed = RealtyFeed(URL, session=FakeSession(
        realty_feed(clean(2), generation_date="2023-01-02T10:00:00.123456789+03:00").encode("utf-8"),
        headers={}))

    feed.get()

    assert feed.last_modified == datetime(2023, 1, 2, 10, 0, 0, 123456, tzinfo=timezone(timedelta(hours=3)))


def test_unusable_generation_date_fails_get():
    feed = RealtyFeed(URL, session=FakeSession(
        realty_feed(clean(2), generation_date="").encode("utf-8"), headers={}))
    with pytest.raises(FormatError):
        feed.get()
    assert not feed.is_fetched


@pytest.mark.parametrize("value, expected", [
    ("2023-01-02T10:00:00Z", datetime(2023, 1, 2, 10, tzinfo=timezone.utc)),
    ("2023-01-02T10:00:00.5+03:00", datetime(2023, 1, 2, 10, 0, 0, 500000, tzinfo=timezone(timedelta(hours=3)))),
])
def test_parse_generation_date(value, expected):
    assert parse_generation_date(value) == expected


def test_clean_feed():
    assert check(clean(11)) == []


def test_missing_internal_id():
    offer = realty_offer(99).replace('internal-id="offer-99"', "")
    assert check(clean() + [offer]) == ["field InternalID is empty. Position: 10"]


def test_missing_image_tags():
    assert check(clean() + [realty_offer(99, tags=("", "", "floor-plan"))]) == [
        "tag 'plan' for image is not found. InternalID: offer-99",
    ]
    assert check(clean() + [realty_offer(99, tags=("", "", ""))]) == [
        "tag 'plan' for image is not found. InternalID: offer-99",
        "tag 'floor-plan' for image is not found. InternalID: offer-99",
    ]


def test_too_few_images():
    assert check(clean() + [realty_offer(99, tags=("plan", "floor-plan"))]) == [
        "field Image contains '2' items. InternalID: offer-99",
    ]


@pytest.mark.parametrize("tag, path", [
    ("type", "offer.Type"),
    ("property-type", "offer.PropertyType"),
    ("creation-date", "offer.CreationDate"),
    ("deal-status", "offer.DealStatus"),
    ("new-flat", "offer.NewFlat"),
    ("building-name", "offer.BuildingName"),
])
def test_required_string(tag, path):
    assert check(clean() + [realty_offer(99, **{tag: None})]) == [f"field {path} is empty. InternalID: offer-99"]


@pytest.mark.parametrize("tag, path", [
    ("yandex-building-id", "offer.YandexBuildingID"),
    ("ready-quarter", "offer.ReadyQuarter"),
])
def test_required_number(tag, path):
    assert check(clean() + [realty_offer(99, **{tag: None})]) == [f"field {path} is empty. InternalID: offer-99"]


def test_living_space_unless_open_plan():
    offer = realty_offer(99).replace("<living-space><value>30</value><unit>кв. м</unit></living-space>", "")
    assert check(clean() + [offer]) == ["field LivingSpace.Value is empty. InternalID: offer-99"]

    open_plan = realty_offer(99, **{"open-plan": "1"}).replace(
        "<living-space><value>30</value><unit>кв. м</unit></living-space>", "")
    assert check(clean() + [open_plan]) == []


def test_floor_above_total():
    assert check(clean() + [realty_offer(99, floor="10")]) == [
        "field Floor is bigger than FloorsTotal. InternalID: offer-99",
    ]


def test_more_room_spaces_than_rooms():
    spaces = "".join(f"<room-space><value>{v}</value><unit>кв. м</unit></room-space>" for v in (10, 12, 14))
    offer = realty_offer(99).replace("</offer>", spaces + "</offer>")
    assert check(clean() + [offer]) == [
        "field RoomSpace contains more values than Rooms. InternalID: offer-99",
    ]


def test_unfinished_in_the_past():
    year = date.today().year - 1
    assert check(clean() + [realty_offer(99, **{"built-year": str(year)})]) == [
        f"BuildingState == unfinished for {year}. InternalID: offer-99",
    ]
