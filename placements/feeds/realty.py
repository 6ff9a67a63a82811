# Yandex Realty feed: <generation-date> followed by a list of <offer>
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Sequence
from xml.etree import ElementTree as ET

from placements.core.validation import Rule, nonzero, parse_optional_int, required, when
from placements.errors import FormatError
from placements.feeds.base import Feed
from placements.models import OptionalInt, Value
from placements.utils.xmltext import attr, integer, number, parse_document, text, texts

REQUIRED_IMAGE_TAGS = ("plan", "floor-plan")
MIN_IMAGES = 3
UNFINISHED = "unfinished"

# fromisoformat() wants exactly microseconds on older interpreters
_RE_FRACTION = re.compile(r"\.(\d+)")


def parse_generation_date(value: str) -> datetime:
    """Parse an RFC 3339 timestamp ("2023-01-02T10:00:00.123456789+03:00" or "...Z")."""
    s = _RE_FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), value.strip(), count=1)
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(s)
    except ValueError as e:
        raise FormatError(f"can't parse generation-date {value!r}") from e
    if parsed.tzinfo is None:
        raise FormatError(f"generation-date {value!r} has no UTC offset")
    return parsed


@dataclass(frozen=True)
class Vas:
    text: str = ""
    start_time: str = ""
    schedule: str = ""


@dataclass(frozen=True)
class Location:
    country: str = ""
    region: str = ""
    address: str = ""
    locality_name: str = ""
    latitude: str = ""
    longitude: str = ""
    direction: str = ""
    distance: str = ""
    metro_name: str = ""
    metro_time_on_transport: str = ""
    metro_time_on_foot: str = ""

    @classmethod
    def from_element(cls, el: ET.Element | None) -> Location:
        return cls(
            country=text(el, "country"),
            region=text(el, "region"),
            address=text(el, "address"),
            locality_name=text(el, "locality-name"),
            latitude=text(el, "latitude"),
            longitude=text(el, "longitude"),
            direction=text(el, "direction"),
            distance=text(el, "distance"),
            metro_name=text(el, "metro/name"),
            metro_time_on_transport=text(el, "metro/time-on-transport"),
            metro_time_on_foot=text(el, "metro/time-on-foot"),
        )


@dataclass(frozen=True)
class SalesAgent:
    category: str = ""
    organization: str = ""
    phone: str = ""


@dataclass(frozen=True)
class Price:
    value: float = 0.0
    currency: str = ""


def _value(el: ET.Element | None) -> Value:
    return Value(value=number(el, "value"), unit=text(el, "unit"))


@dataclass(frozen=True)
class Offer:
    internal_id: str = ""
    image_tags: list[str] = field(default_factory=list)     # image@tag, one entry per <image>
    type: str = ""
    property_type: str = ""
    category: str = ""
    url: str = ""
    window_view: str = ""
    ceiling_height: list[str] = field(default_factory=list)
    description: str = ""
    creation_date: str = ""
    vas: list[Vas] = field(default_factory=list)
    last_update_date: str = ""
    expire_date: str = ""
    location: Location = field(default_factory=Location)
    sales_agent: SalesAgent = field(default_factory=SalesAgent)
    price: Price = field(default_factory=Price)
    new_flat: str = ""
    deal_status: str = ""
    built_year: int = 0
    ready_quarter: int = 0
    area: Value = field(default_factory=Value)
    room_space: list[Value] = field(default_factory=list)
    living_space: Value = field(default_factory=Value)
    kitchen_space: Value = field(default_factory=Value)
    renovation: str = ""
    rooms: int = 0
    rubbish_chute: str = ""
    floors_total: int = 0
    floor: int = 0
    building_name: str = ""
    building_type: str = ""
    mortgage: str = ""
    building_state: str = ""
    lift: str = ""
    bathroom_unit: str = ""
    yandex_building_id: int = 0
    yandex_house_id: OptionalInt = field(default_factory=OptionalInt)
    building_section: str = ""
    balcony: str = ""
    open_plan: str = ""

    @classmethod
    def from_element(cls, el: ET.Element) -> Offer:
        house_id = el.find("yandex-house-id")
        return cls(
            internal_id=attr(el, "internal-id"),
            image_tags=[attr(img, "tag") for img in el.findall("image")],
            type=text(el, "type"),
            property_type=text(el, "property-type"),
            category=text(el, "category"),
            url=text(el, "url"),
            window_view=text(el, "window-view"),
            ceiling_height=texts(el, "ceiling-height"),
            description=text(el, "description"),
            creation_date=text(el, "creation-date"),
            vas=[Vas(text=text(v), start_time=attr(v, "start-time"), schedule=attr(v, "schedule"))
                 for v in el.findall("vas")],
            last_update_date=text(el, "last-update-date"),
            expire_date=text(el, "expire-date"),
            location=Location.from_element(el.find("location")),
            sales_agent=SalesAgent(
                category=text(el, "sales-agent/category"),
                organization=text(el, "sales-agent/organization"),
                phone=text(el, "sales-agent/phone"),
            ),
            price=Price(value=number(el, "price/value"), currency=text(el, "price/currency")),
            new_flat=text(el, "new-flat"),
            deal_status=text(el, "deal-status"),
            built_year=integer(el, "built-year"),
            ready_quarter=integer(el, "ready-quarter"),
            area=_value(el.find("area")),
            room_space=[_value(r) for r in el.findall("room-space")],
            living_space=_value(el.find("living-space")),
            kitchen_space=_value(el.find("kitchen-space")),
            renovation=text(el, "renovation"),
            rooms=integer(el, "rooms"),
            rubbish_chute=text(el, "rubbish-chute"),
            floors_total=integer(el, "floors-total"),
            floor=integer(el, "floor"),
            building_name=text(el, "building-name"),
            building_type=text(el, "building-type"),
            mortgage=text(el, "mortgage"),
            building_state=text(el, "building-state"),
            lift=text(el, "lift"),
            bathroom_unit=text(el, "bathroom-unit"),
            yandex_building_id=integer(el, "yandex-building-id"),
            yandex_house_id=parse_optional_int(text(house_id)) if house_id is not None else OptionalInt(),
            building_section=text(el, "building-section"),
            balcony=text(el, "balcony"),
            open_plan=text(el, "open-plan"),
        )


@dataclass(frozen=True)
class Data:
    generation_date: str = ""
    offers: list[Offer] = field(default_factory=list)


def _missing_tags(o: Offer, idx: int, ident: str) -> list[str]:
    tags = set(o.image_tags)
    return [f"tag '{tag}' for image is not found. InternalID: {ident}"
            for tag in REQUIRED_IMAGE_TAGS if tag not in tags]


# --- Checks ---

OFFER = "offer"

RULES: list[Rule] = [
    when(lambda o: o.internal_id == "",
         lambda o, idx, ident: f"field InternalID is empty. Position: {idx}"),
    _missing_tags,
    required(OFFER, "Type", lambda o: o.type),
    required(OFFER, "PropertyType", lambda o: o.property_type),
    required(OFFER, "CreationDate", lambda o: o.creation_date),
    required("offer.Location", "Country", lambda o: o.location.country),
    required("offer.Location", "Address", lambda o: o.location.address),
    required("offer.SalesAgent", "Phone", lambda o: o.sales_agent.phone),
    required("offer.SalesAgent", "Category", lambda o: o.sales_agent.category),
    required(OFFER, "DealStatus", lambda o: o.deal_status),
    nonzero("offer.Price", "Value", lambda o: o.price.value),
    required("offer.Price", "Currency", lambda o: o.price.currency),
    nonzero("offer.Area", "Value", lambda o: o.area.value),
    required("offer.Area", "Unit", lambda o: o.area.unit),
    nonzero(OFFER, "Rooms", lambda o: o.rooms),
    required(OFFER, "NewFlat", lambda o: o.new_flat),
    nonzero(OFFER, "Floor", lambda o: o.floor),
    nonzero(OFFER, "FloorsTotal", lambda o: o.floors_total),
    required(OFFER, "BuildingName", lambda o: o.building_name),
    nonzero(OFFER, "YandexBuildingID", lambda o: o.yandex_building_id),
    required(OFFER, "BuildingState", lambda o: o.building_state),
    nonzero(OFFER, "BuiltYear", lambda o: o.built_year),
    nonzero(OFFER, "ReadyQuarter", lambda o: o.ready_quarter),
    when(lambda o: o.living_space.value == 0 and o.open_plan != "1",
         lambda o, idx, ident: f"field LivingSpace.Value is empty. InternalID: {ident}"),
    when(lambda o: o.built_year < date.today().year and o.building_state == UNFINISHED,
         lambda o, idx, ident: f"BuildingState == unfinished for {o.built_year}. InternalID: {ident}"),
    when(lambda o: o.floor > o.floors_total,
         lambda o, idx, ident: f"field Floor is bigger than FloorsTotal. InternalID: {ident}"),
    when(lambda o: len(o.room_space) > o.rooms,
         lambda o, idx, ident: f"field RoomSpace contains more values than Rooms. InternalID: {ident}"),
    when(lambda o: len(o.image_tags) < MIN_IMAGES,
         lambda o, idx, ident: f"field Image contains '{len(o.image_tags)}' items. InternalID: {ident}"),
]


class RealtyFeed(Feed):
    @property
    def name(self) -> str:
        return "realty"

    @property
    def rules(self) -> Sequence[Rule]:
        return RULES

    def decode(self, body: bytes) -> Data:
        root = parse_document(body)
        return Data(
            generation_date=text(root, "generation-date"),
            offers=[Offer.from_element(el) for el in root.findall("offer")],
        )

    def after_decode(self) -> None:
        # No Last-Modified header: fall back to the date the feed was generated
        if self.last_modified is None:
            self.last_modified = parse_generation_date(self.data.generation_date)

    def listings(self) -> Sequence[Offer]:
        return self.data.offers

    def listing_id(self, listing: Offer) -> str:
        return listing.internal_id
