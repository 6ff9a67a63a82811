# apartments feed for Avito autoload (root <Ads>, one <Ad> per listing)
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence
from xml.etree import ElementTree as ET

from placements.core import transport
from placements.core.validation import Rule, each, nonzero, positional, required, when
from placements.feeds.base import Feed
from placements.utils.xmltext import attr, integer, integer_attr, number, parse_document, text

DEVELOPMENTS_URL = "https://autoload.avito.ru/format/New_developments.xml"

STUDIO = "Студия"
MIN_IMAGES = 3
MAX_IMAGES = 40


@dataclass(frozen=True)
class Ad:
    id: str = ""
    ad_status: str = ""
    allow_email: str = ""
    contact_phone: str = ""
    latitude: str = ""
    longitude: str = ""
    description: str = ""
    category: str = ""
    operation_type: str = ""
    price: int = 0
    rooms: str = ""
    square: float = 0.0
    balcony_or_loggia: str = ""
    kitchen_space: float = 0.0
    view_from_windows: str = ""
    ceiling_height: str = ""
    living_space: float = 0.0
    decoration: str = ""
    deal_type: str = ""
    room_type: str = ""         # RoomType/Option
    status: str = ""
    floor: int = 0
    floors: int = 0
    house_type: str = ""
    market_type: str = ""
    property_rights: str = ""
    new_development_id: str = ""
    images: list[str] = field(default_factory=list)    # Images/Image@url

    @classmethod
    def from_element(cls, el: ET.Element) -> Ad:
        return cls(
            id=text(el, "Id"),
            ad_status=text(el, "AdStatus"),
            allow_email=text(el, "AllowEmail"),
            contact_phone=text(el, "ContactPhone"),
            latitude=text(el, "Latitude"),
            longitude=text(el, "Longitude"),
            description=text(el, "Description"),
            category=text(el, "Category"),
            operation_type=text(el, "OperationType"),
            price=integer(el, "Price"),
            rooms=text(el, "Rooms"),
            square=number(el, "Square"),
            balcony_or_loggia=text(el, "BalconyOrLoggia"),
            kitchen_space=number(el, "KitchenSpace"),
            view_from_windows=text(el, "ViewFromWindows"),
            ceiling_height=text(el, "CeilingHeight"),
            living_space=number(el, "LivingSpace"),
            decoration=text(el, "Decoration"),
            deal_type=text(el, "DealType"),
            room_type=text(el, "RoomType/Option"),
            status=text(el, "Status"),
            floor=integer(el, "Floor"),
            floors=integer(el, "Floors"),
            house_type=text(el, "HouseType"),
            market_type=text(el, "MarketType"),
            property_rights=text(el, "PropertyRights"),
            new_development_id=text(el, "NewDevelopmentId"),
            images=[attr(img, "url") for img in el.findall("Images/Image")],
        )


@dataclass(frozen=True)
class Data:
    format_version: int = 0
    target: str = ""
    ads: list[Ad] = field(default_factory=list)


# --- New developments catalogue ---

@dataclass(frozen=True)
class House:
    id: str
    name: str
    address: str


@dataclass(frozen=True)
class Development:
    id: str
    name: str
    address: str
    developer: str
    housing: list[House]


@dataclass(frozen=True)
class City:
    name: str
    objects: list[Development]


@dataclass(frozen=True)
class Region:
    name: str
    cities: list[City]


def _house(el: ET.Element) -> House:
    return House(id=attr(el, "id"), name=attr(el, "name"), address=attr(el, "address"))


def _development(el: ET.Element) -> Development:
    return Development(
        id=attr(el, "id"),
        name=attr(el, "name"),
        address=attr(el, "address"),
        developer=attr(el, "developer"),
        housing=[_house(h) for h in el.findall("Housing")],
    )


def parse_developments(body: bytes) -> list[Region]:
    root = parse_document(body)
    return [
        Region(
            name=attr(r, "name"),
            cities=[
                City(name=attr(c, "name"), objects=[_development(o) for o in c.findall("Object")])
                for c in r.findall("City")
            ],
        )
        for r in root.findall("Region")
    ]


# --- Checks ---

AD = "Ad"

RULES: list[Rule] = [
    positional(AD, "ID", lambda a: a.id),
    required(AD, "ContactPhone", lambda a: a.contact_phone),
    required(AD, "Description", lambda a: a.description),
    required(AD, "Category", lambda a: a.category),
    nonzero(AD, "Price", lambda a: a.price),
    required(AD, "OperationType", lambda a: a.operation_type),
    required(AD, "MarketType", lambda a: a.market_type),
    required(AD, "HouseType", lambda a: a.house_type),
    nonzero(AD, "Floor", lambda a: a.floor),
    nonzero(AD, "Floors", lambda a: a.floors),
    required(AD, "Rooms", lambda a: a.rooms),
    nonzero(AD, "Square", lambda a: a.square),
    when(lambda a: a.living_space == 0 and a.rooms != STUDIO,
         lambda a, idx, ident: f"field LivingSpace is empty. InternalID: {ident}"),
    required(AD, "Status", lambda a: a.status),
    required(AD, "NewDevelopmentId", lambda a: a.new_development_id),
    required(AD, "PropertyRights", lambda a: a.property_rights),
    required(AD, "Decoration", lambda a: a.decoration),
    when(lambda a: a.floor > a.floors,
         lambda a, idx, ident: f"field Floor is bigger than Floors. InternalID: {ident}"),
    each("Images.Image", "URL", lambda a: a.images),
    when(lambda a: not MIN_IMAGES <= len(a.images) <= MAX_IMAGES,
         lambda a, idx, ident: f"field Images.Image contains '{len(a.images)}' items. InternalID: {ident}"),
]


class AvitoFeed(Feed):
    @property
    def name(self) -> str:
        return "avito"

    @property
    def rules(self) -> Sequence[Rule]:
        return RULES

    def decode(self, body: bytes) -> Data:
        root = parse_document(body, root="Ads")
        return Data(
            format_version=integer_attr(root, "formatVersion"),
            target=attr(root, "target"),
            ads=[Ad.from_element(el) for el in root.findall("Ad")],
        )

    def listings(self) -> Sequence[Ad]:
        return self.data.ads

    def listing_id(self, listing: Ad) -> str:
        return listing.id

    def get_developments(self, timeout: float | None = None) -> list[Region]:
        """Avito's catalogue of new developments, for resolving NewDevelopmentId."""
        body, _ = transport.fetch_body(self._session, DEVELOPMENTS_URL, timeout=timeout)
        return parse_developments(body)
