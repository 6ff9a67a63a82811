# CIAN feed: <feed_version> followed by a flat list of <object>
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Sequence
from xml.etree import ElementTree as ET

from placements.core.validation import Rule, each, nonzero, parse_locale_float, required, when
from placements.feeds.base import Feed
from placements.utils.xmltext import flag, integer, number, parse_document, text

MIN_PHOTOS = 3


@dataclass(frozen=True)
class Photo:
    full_url: str = ""
    is_default: bool = False

    @classmethod
    def from_element(cls, el: ET.Element | None) -> Photo:
        return cls(full_url=text(el, "FullUrl"), is_default=flag(el, "IsDefault"))


@dataclass(frozen=True)
class Underground:
    transport_type: str = ""
    time: int = 0
    id: int = 0


@dataclass(frozen=True)
class Deadline:
    quarter: str = ""
    year: int = 0
    is_complete: bool = False


@dataclass(frozen=True)
class Building:
    floors_count: int = 0
    material_type: str = ""
    passenger_lifts_count: int = 0
    cargo_lifts_count: int = 0
    parking_type: str = ""
    deadline: Deadline = field(default_factory=Deadline)

    @classmethod
    def from_element(cls, el: ET.Element | None) -> Building:
        return cls(
            floors_count=integer(el, "FloorsCount"),
            material_type=text(el, "MaterialType"),
            passenger_lifts_count=integer(el, "PassengerLiftsCount"),
            cargo_lifts_count=integer(el, "CargoLiftsCount"),
            parking_type=text(el, "Parking/Type"),
            deadline=Deadline(
                quarter=text(el, "Deadline/Quarter"),
                year=integer(el, "Deadline/Year"),
                is_complete=flag(el, "Deadline/IsComplete"),
            ),
        )


@dataclass(frozen=True)
class BargainTerms:
    price: float = 0.0      # may come with a decimal comma
    currency: str = ""
    mortgage_allowed: bool = False
    sale_type: str = ""


@dataclass(frozen=True)
class JKFlat:
    flat_number: str = ""
    section_number: str = ""
    flat_type: str = ""


@dataclass(frozen=True)
class JKHouse:
    id: int = 0
    name: str = ""
    flat: JKFlat = field(default_factory=JKFlat)


@dataclass(frozen=True)
class JK:
    id: int = 0
    name: str = ""
    house: JKHouse = field(default_factory=JKHouse)

    @classmethod
    def from_element(cls, el: ET.Element | None) -> JK:
        return cls(
            id=integer(el, "Id"),
            name=text(el, "Name"),
            house=JKHouse(
                id=integer(el, "House/Id"),
                name=text(el, "House/Name"),
                flat=JKFlat(
                    flat_number=text(el, "House/Flat/FlatNumber"),
                    section_number=text(el, "House/Flat/SectionNumber"),
                    flat_type=text(el, "House/Flat/FlatType"),
                ),
            ),
        )


@dataclass(frozen=True)
class Object:
    external_id: str = ""
    description: str = ""
    address: str = ""
    lat: float = 0.0
    lng: float = 0.0
    cadastral_number: str = ""
    phone_country_code: str = ""
    phone_number: str = ""
    layout_photo: Photo = field(default_factory=Photo)
    photos: list[Photo] = field(default_factory=list)
    category: str = ""
    room_type: str = ""
    flat_rooms_count: int = 0
    total_area: float = 0.0
    living_area: float = 0.0
    kitchen_area: float = 0.0
    project_declaration_url: str = ""
    floor_number: int = 0
    combined_wcs_count: int = 0
    building: Building = field(default_factory=Building)
    bargain_terms: BargainTerms = field(default_factory=BargainTerms)
    jk: JK = field(default_factory=JK)
    decoration: str = ""
    windows_view_type: str = ""
    ceiling_height: float = 0.0
    undergrounds: list[Underground] = field(default_factory=list)
    is_apartments: bool = False

    @classmethod
    def from_element(cls, el: ET.Element) -> Object:
        terms = el.find("BargainTerms")
        return cls(
            external_id=text(el, "ExternalId"),
            description=text(el, "Description"),
            address=text(el, "Address"),
            lat=number(el, "Coordinates/Lat"),
            lng=number(el, "Coordinates/Lng"),
            cadastral_number=text(el, "CadastralNumber"),
            phone_country_code=text(el, "Phones/PhoneSchema/CountryCode"),
            phone_number=text(el, "Phones/PhoneSchema/Number"),
            layout_photo=Photo.from_element(el.find("LayoutPhoto")),
            photos=[Photo.from_element(p) for p in el.findall("Photos/PhotoSchema")],
            category=text(el, "Category"),
            room_type=text(el, "RoomType"),
            flat_rooms_count=integer(el, "FlatRoomsCount"),
            total_area=number(el, "TotalArea"),
            living_area=number(el, "LivingArea"),
            kitchen_area=number(el, "KitchenArea"),
            project_declaration_url=text(el, "ProjectDeclarationUrl"),
            floor_number=integer(el, "FloorNumber"),
            combined_wcs_count=integer(el, "CombinedWcsCount"),
            building=Building.from_element(el.find("Building")),
            bargain_terms=BargainTerms(
                price=parse_locale_float(text(terms, "Price")),
                currency=text(terms, "Currency"),
                mortgage_allowed=flag(terms, "MortgageAllowed"),
                sale_type=text(terms, "SaleType"),
            ),
            jk=JK.from_element(el.find("JKSchema")),
            decoration=text(el, "Decoration"),
            windows_view_type=text(el, "WindowsViewType"),
            ceiling_height=number(el, "CeilingHeight"),
            undergrounds=[
                Underground(
                    transport_type=text(u, "TransportType"),
                    time=integer(u, "Time"),
                    id=integer(u, "Id"),
                )
                for u in el.findall("Undergrounds/UndergroundInfoSchema")
            ],
            is_apartments=flag(el, "isApartments"),
        )


@dataclass(frozen=True)
class Data:
    feed_version: str = ""
    objects: list[Object] = field(default_factory=list)


def _deadline_overdue(o: Object) -> bool:
    deadline = o.building.deadline
    return deadline.year < date.today().year and not deadline.is_complete


# --- Checks ---

OBJ = "object"

# Numeric checks compare the integer part, so 0.5 m2 counts as empty
RULES: list[Rule] = [
    when(lambda o: o.external_id == "",
         lambda o, idx, ident: f"field ExternalId is empty. Position: {idx}"),
    required(OBJ, "Address", lambda o: o.address),
    required("object.Phones.PhoneSchema", "CountryCode", lambda o: o.phone_country_code),
    required("object.Phones.PhoneSchema", "Number", lambda o: o.phone_number),
    required("object.LayoutPhoto", "FullUrl", lambda o: o.layout_photo.full_url),
    required(OBJ, "Category", lambda o: o.category),
    each("object.Photos.PhotoSchema", "FullUrl", lambda o: o.photos, lambda p: p.full_url),
    nonzero(OBJ, "FlatRoomsCount", lambda o: o.flat_rooms_count),
    nonzero(OBJ, "TotalArea", lambda o: int(o.total_area)),
    nonzero(OBJ, "FloorNumber", lambda o: o.floor_number),
    nonzero("object.Building", "FloorsCount", lambda o: o.building.floors_count),
    nonzero("object.Building.Deadline", "Year", lambda o: o.building.deadline.year),
    required("object.Building.Deadline", "Quarter", lambda o: o.building.deadline.quarter),
    nonzero("object.BargainTerms", "Price", lambda o: int(o.bargain_terms.price)),
    nonzero("object.JKSchema", "Id", lambda o: o.jk.id),
    required("object.JKSchema", "Name", lambda o: o.jk.name),
    nonzero("object.JKSchema.House", "Id", lambda o: o.jk.house.id),
    required("object.JKSchema.House", "Name", lambda o: o.jk.house.name),
    when(_deadline_overdue,
         lambda o, idx, ident: f"field Building.Deadline is False for {o.building.deadline.year}. InternalID: {ident}"),
    when(lambda o: o.floor_number > o.building.floors_count,
         lambda o, idx, ident: f"field FloorNumber is greater than Building.FloorsCount. InternalID: {ident}"),
    when(lambda o: len(o.photos) < MIN_PHOTOS,
         lambda o, idx, ident: f"field Photos.PhotoSchema contains '{len(o.photos)}' items. InternalID: {ident}"),
]


class CianFeed(Feed):
    @property
    def name(self) -> str:
        return "cian"

    @property
    def rules(self) -> Sequence[Rule]:
        return RULES

    def decode(self, body: bytes) -> Data:
        root = parse_document(body)
        return Data(
            feed_version=text(root, "feed_version"),
            objects=[Object.from_element(el) for el in root.findall("object")],
        )

    def listings(self) -> Sequence[Object]:
        return self.data.objects

    def listing_id(self, listing: Object) -> str:
        return listing.external_id
