# DomClick feed: a single residential <complex> with buildings and their flats
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterator, Sequence
from xml.etree import ElementTree as ET

from placements.core.validation import (Rule, apply_rules, check_zero_with_id, each, nonzero, positional,
                                        present, required, when)
from placements.feeds.base import Feed
from placements.utils.xmltext import integer, number, optional_integer, parse_document, text, texts

UNFINISHED = "unfinished"


@dataclass(frozen=True)
class Flat:
    flat_id: str = ""
    apartment: str = ""
    floor: int = 0
    room: int | None = None     # None when <room> is missing
    plan: str = ""
    balcony: str = ""
    renovation: str = ""
    price: float = 0.0
    area: float = 0.0
    living_area: float = 0.0
    kitchen_area: float = 0.0
    rooms_area: list[str] = field(default_factory=list)
    bathroom: str = ""
    housing_type: str = ""
    decoration: int = 0
    ready_housing: str = ""
    building_floors: int = 0    # floors of the enclosing <building>

    @classmethod
    def from_element(cls, el: ET.Element, building_floors: int = 0) -> Flat:
        return cls(
            flat_id=text(el, "flat_id"),
            apartment=text(el, "apartment"),
            floor=integer(el, "floor"),
            room=optional_integer(el, "room"),
            plan=text(el, "plan"),
            balcony=text(el, "balcony"),
            renovation=text(el, "renovation"),
            price=number(el, "price"),
            area=number(el, "area"),
            living_area=number(el, "living_area"),
            kitchen_area=number(el, "kitchen_area"),
            rooms_area=texts(el, "rooms_area/area"),
            bathroom=text(el, "bathroom"),
            housing_type=text(el, "housing_type"),
            decoration=integer(el, "decoration"),
            ready_housing=text(el, "ready_housing"),
            building_floors=building_floors,
        )


@dataclass(frozen=True)
class Building:
    id: str = ""
    fz_214: str = ""
    name: str = ""
    floors: int = 0
    building_state: str = ""
    built_year: int = 0
    ready_quarter: int = 0
    building_type: str = ""
    image: str = ""
    flats: list[Flat] = field(default_factory=list)

    @classmethod
    def from_element(cls, el: ET.Element) -> Building:
        floors = integer(el, "floors")
        return cls(
            id=text(el, "id"),
            fz_214=text(el, "fz_214"),
            name=text(el, "name"),
            floors=floors,
            building_state=text(el, "building_state"),
            built_year=integer(el, "built_year"),
            ready_quarter=integer(el, "ready_quarter"),
            building_type=text(el, "building_type"),
            image=text(el, "image"),
            flats=[Flat.from_element(f, floors) for f in el.findall("flats/flat")],
        )


@dataclass(frozen=True)
class Profit:
    title: str = ""
    text: str = ""
    image: str = ""


@dataclass(frozen=True)
class WorkDay:
    day: str = ""
    open_at: str = ""
    close_at: str = ""


@dataclass(frozen=True)
class SalesInfo:
    sales_phone: str = ""
    responsible_officer_phone: str = ""
    sales_address: str = ""
    sales_latitude: str = ""
    sales_longitude: str = ""
    timezone: str = ""
    work_days: list[WorkDay] = field(default_factory=list)


@dataclass(frozen=True)
class Developer:
    id: str = ""
    name: str = ""
    phone: str = ""
    site: str = ""
    logo: str = ""


@dataclass(frozen=True)
class Complex:
    id: str = ""
    name: str = ""
    latitude: str = ""
    longitude: str = ""
    address: str = ""
    images: list[str] = field(default_factory=list)
    description_title: str = ""
    description_text: str = ""
    infrastructure: dict[str, str] = field(default_factory=dict)
    profits_main: list[Profit] = field(default_factory=list)
    profits_secondary: list[Profit] = field(default_factory=list)
    buildings: list[Building] = field(default_factory=list)
    sales_info: SalesInfo = field(default_factory=SalesInfo)
    developer: Developer = field(default_factory=Developer)


INFRASTRUCTURE = ("parking", "security", "fenced_area", "sports_ground", "playground", "school", "kindergarten")


def _profits(el: ET.Element | None, path: str) -> list[Profit]:
    if el is None:
        return []
    return [Profit(title=text(p, "title"), text=text(p, "text"), image=text(p, "image"))
            for p in el.findall(path)]


def _complex(el: ET.Element | None) -> Complex:
    if el is None:
        return Complex()
    sales = el.find("sales_info")
    dev = el.find("developer")
    return Complex(
        id=text(el, "id"),
        name=text(el, "name"),
        latitude=text(el, "latitude"),
        longitude=text(el, "longitude"),
        address=text(el, "address"),
        images=texts(el, "images/image"),
        description_title=text(el, "description_main/title"),
        description_text=text(el, "description_main/text"),
        infrastructure={k: text(el, f"infrastructure/{k}") for k in INFRASTRUCTURE},
        profits_main=_profits(el, "profits_main/profit_main"),
        profits_secondary=_profits(el, "profits_secondary/profit_secondary"),
        buildings=[Building.from_element(b) for b in el.findall("buildings/building")],
        sales_info=SalesInfo(
            sales_phone=text(sales, "sales_phone"),
            responsible_officer_phone=text(sales, "responsible_officer_phone"),
            sales_address=text(sales, "sales_address"),
            sales_latitude=text(sales, "sales_latitude"),
            sales_longitude=text(sales, "sales_longitude"),
            timezone=text(sales, "timezone"),
            work_days=[
                WorkDay(day=text(d, "day"), open_at=text(d, "open_at"), close_at=text(d, "close_at"))
                for d in (sales.findall("work_days/work_day") if sales is not None else [])
            ],
        ),
        developer=Developer(
            id=text(dev, "id"),
            name=text(dev, "name"),
            phone=text(dev, "phone"),
            site=text(dev, "site"),
            logo=text(dev, "logo"),
        ),
    )


# --- Checks ---

COMPLEX = "Complex"
PROFIT = "Complex.ProfitsMain.ProfitMain"
BUILDING = "Complex.Buildings.Building"
FLAT = "Flats.Flat"

COMPLEX_RULES: list[Rule] = [
    present(COMPLEX, "ID", lambda c: c.id),
    present(COMPLEX, "Name", lambda c: c.name),
    present(COMPLEX, "Address", lambda c: c.address),
    present(COMPLEX, "Latitude", lambda c: c.latitude),
    present(COMPLEX, "Longitude", lambda c: c.longitude),
    each("Complex.Images.Image", "Image", lambda c: c.images),
    present("Complex.DescriptionMain", "Title", lambda c: c.description_title),
    present("Complex.DescriptionMain", "Text", lambda c: c.description_text),
]

PROFIT_RULES: list[Rule] = [
    positional(PROFIT, "Title", lambda p: p.title),
    positional(PROFIT, "Text", lambda p: p.text),
    positional(PROFIT, "Image", lambda p: p.image),
]

BUILDING_RULES: list[Rule] = [
    positional(BUILDING, "ID", lambda b: b.id),
    required(BUILDING, "Fz214", lambda b: b.fz_214),
    required(BUILDING, "Name", lambda b: b.name),
    nonzero(BUILDING, "Floors", lambda b: b.floors),
    required(BUILDING, "BuildingState", lambda b: b.building_state),
    nonzero(BUILDING, "BuiltYear", lambda b: b.built_year),
    nonzero(BUILDING, "ReadyQuarter", lambda b: b.ready_quarter),
    required(BUILDING, "BuildingType", lambda b: b.building_type),
    when(lambda b: b.built_year < date.today().year and b.building_state == UNFINISHED,
         lambda b, idx, ident: f"BuildingState == unfinished for {b.built_year}. InternalID: {ident}"),
]

SALES_RULES: list[Rule] = [
    present("Complex.SalesInfo", "SalesPhone", lambda s: s.sales_phone),
    present("Complex.SalesInfo", "SalesAddress", lambda s: s.sales_address),
    present("Complex.SalesInfo", "SalesLatitude", lambda s: s.sales_latitude),
    present("Complex.SalesInfo", "SalesLongitude", lambda s: s.sales_longitude),
]

DEVELOPER_RULES: list[Rule] = [
    present("Complex.Developer", "Name", lambda d: d.name),
    present("Complex.Developer", "Phone", lambda d: d.phone),
    present("Complex.Developer", "Site", lambda d: d.site),
    present("Complex.Developer", "Logo", lambda d: d.logo),
]


def _living_area(flat: Flat, idx: int, ident: str) -> list[str]:
    # Without living_area every room area has to be filled in instead
    msg = check_zero_with_id(ident, FLAT, "LivingArea", flat.living_area)
    if not msg:
        return []
    out = [msg]
    for i, room in enumerate(flat.rooms_area):
        if room == "":
            out.append(f"Field Flats.Flat.RoomsArea.Area[{i}] is empty. InternalID: {ident}")
    return out


FLAT_RULES: list[Rule] = [
    positional(FLAT, "FlatID", lambda f: f.flat_id),
    nonzero(FLAT, "Floor", lambda f: f.floor),
    when(lambda f: f.room is None,
         lambda f, idx, ident: f"Field Flats.Room is empty. InternalID: {ident}"),
    required(FLAT, "Plan", lambda f: f.plan),
    required(FLAT, "Balcony", lambda f: f.balcony),
    nonzero(FLAT, "Price", lambda f: f.price),
    nonzero(FLAT, "Area", lambda f: f.area),
    _living_area,
    nonzero(FLAT, "KitchenArea", lambda f: f.kitchen_area),
    required(FLAT, "Bathroom", lambda f: f.bathroom),
    when(lambda f: f.floor > f.building_floors,
         lambda f, idx, ident: f"Field Flats.Flat.Floor is bigger than building.Floors. InternalID: {ident}"),
]


class DomClickFeed(Feed):
    @property
    def name(self) -> str:
        return "domclick"

    @property
    def rules(self) -> Sequence[Rule]:
        return FLAT_RULES

    def decode(self, body: bytes) -> Complex:
        root = parse_document(body, root="complexes")
        return _complex(root.find("complex"))

    def listings(self) -> Sequence[Flat]:
        return [flat for building in self.data.buildings for flat in building.flats]

    def listing_id(self, listing: Flat) -> str:
        return listing.flat_id

    def findings(self) -> Iterator[str]:
        residence: Complex = self.data
        yield from apply_rules(COMPLEX_RULES, residence, 0, residence.id)

        for idx, profit in enumerate(residence.profits_main):
            yield from apply_rules(PROFIT_RULES, profit, idx, "")

        for pos, building in enumerate(residence.buildings):
            yield from apply_rules(BUILDING_RULES, building, pos, building.id)
            # positions restart in every building
            for idx, flat in enumerate(building.flats):
                yield from apply_rules(self.rules, flat, idx, self.listing_id(flat))

        yield from apply_rules(SALES_RULES, residence.sales_info, 0, "")
        yield from apply_rules(DEVELOPER_RULES, residence.developer, 0, "")
