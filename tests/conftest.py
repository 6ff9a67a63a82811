import os
from datetime import date

import pytest
from requests.structures import CaseInsensitiveDict

# runner.config refuses to load without at least one feed url
os.environ.setdefault("AVITO_FEED_URL", "https://example.com/avito.xml")

NEXT_YEAR = date.today().year + 1
LAST_MODIFIED = "Wed, 21 Oct 2015 07:28:00 GMT"


class FakeResponse:
    def __init__(self, status_code=200, content=b"", headers=None, reason="OK"):
        self.status_code = status_code
        self.content = content
        self.headers = CaseInsensitiveDict(headers or {})
        self.reason = reason


class FakeSession:
    """Stands in for requests.Session; replays canned HEAD/GET responses."""

    def __init__(self, body=b"", headers=None, head_status=200, get_status=200, error=None):
        self.body = body
        self.headers = {"Last-Modified": LAST_MODIFIED} if headers is None else headers
        self.head_status = head_status
        self.get_status = get_status
        self.error = error
        self.calls = []

    def head(self, url, **kwargs):
        self.calls.append(("HEAD", url, kwargs.get("timeout")))
        if self.error:
            raise self.error
        reason = "OK" if self.head_status == 200 else "Not Found"
        return FakeResponse(self.head_status, b"", self.headers, reason)

    def get(self, url, **kwargs):
        self.calls.append(("GET", url, kwargs.get("timeout")))
        if self.error:
            raise self.error
        reason = "OK" if self.get_status == 200 else "Internal Server Error"
        return FakeResponse(self.get_status, self.body, self.headers, reason)


@pytest.fixture
def session_for():
    def make(body, **kwargs):
        if isinstance(body, str):
            body = body.encode("utf-8")
        return FakeSession(body, **kwargs)
    return make


def _tags(fields):
    return "".join(f"<{k}>{v}</{k}>" for k, v in fields.items() if v is not None)


# --- Avito ---

def avito_ad(i, images=3, **over):
    fields = {
        "Id": f"ad-{i}",
        "ContactPhone": "+7 900 000-00-00",
        "Description": "Просторная квартира",
        "Category": "Квартиры",
        "Price": "5000000",
        "OperationType": "Продам",
        "MarketType": "Новостройка",
        "HouseType": "Монолитный",
        "Floor": "3",
        "Floors": "9",
        "Rooms": "2",
        "Square": "54.5",
        "LivingSpace": "30",
        "Status": "Квартира",
        "NewDevelopmentId": "12345",
        "PropertyRights": "Застройщик",
        "Decoration": "Без отделки",
    }
    fields.update(over)
    pics = "".join(f'<Image url="https://img.example.com/{i}/{n}.jpg"/>' for n in range(images))
    return f"<Ad>{_tags(fields)}<Images>{pics}</Images></Ad>"


def avito_feed(ads):
    return f'<?xml version="1.0" encoding="UTF-8"?><Ads formatVersion="3" target="Avito.ru">{"".join(ads)}</Ads>'


# --- CIAN ---

def cian_object(i, photos=3, price="5 000 000,50", **over):
    fields = {
        "ExternalId": f"obj-{i}",
        "Address": "Москва, ул. Тверская, 1",
        "Category": "newBuildingFlatSale",
        "FlatRoomsCount": "2",
        "TotalArea": "54.5",
        "FloorNumber": "3",
    }
    fields.update(over)
    pics = "".join(f"<PhotoSchema><FullUrl>https://img.example.com/{i}/{n}.jpg</FullUrl></PhotoSchema>"
                   for n in range(photos))
    return (
        f"<object>{_tags(fields)}"
        "<Phones><PhoneSchema><CountryCode>+7</CountryCode><Number>9000000000</Number></PhoneSchema></Phones>"
        "<LayoutPhoto><FullUrl>https://img.example.com/plan.jpg</FullUrl><IsDefault>true</IsDefault></LayoutPhoto>"
        f"<Photos>{pics}</Photos>"
        "<Building><FloorsCount>9</FloorsCount>"
        "<Deadline><Quarter>q4</Quarter><Year>2020</Year><IsComplete>true</IsComplete></Deadline></Building>"
        f"<BargainTerms><Price>{price}</Price><Currency>rur</Currency></BargainTerms>"
        "<JKSchema><Id>10</Id><Name>ЖК Тест</Name><House><Id>20</Id><Name>Корпус 1</Name></House></JKSchema>"
        "</object>"
    )


def cian_feed(objects):
    return f"<feed><feed_version>2</feed_version>{''.join(objects)}</feed>"


# --- DomClick ---

def domclick_flat(i, floor=3, **over):
    fields = {
        "flat_id": f"flat-{i}",
        "floor": str(floor),
        "room": "2",
        "plan": "https://img.example.com/plan.jpg",
        "balcony": "есть",
        "price": "5000000",
        "area": "54.5",
        "living_area": "30",
        "kitchen_area": "10",
        "bathroom": "совмещенный",
    }
    fields.update(over)
    return f"<flat>{_tags(fields)}</flat>"


def domclick_building(bid, flats, floors=9, state="unfinished", year=NEXT_YEAR):
    return (
        f"<building><id>{bid}</id><fz_214>да</fz_214><name>Корпус {bid}</name><floors>{floors}</floors>"
        f"<building_state>{state}</building_state><built_year>{year}</built_year>"
        f"<ready_quarter>4</ready_quarter><building_type>монолит</building_type>"
        f"<flats>{''.join(flats)}</flats></building>"
    )


def domclick_feed(buildings):
    return (
        "<complexes><complex><id>c-1</id><name>ЖК Тест</name><latitude>55.75</latitude>"
        "<longitude>37.61</longitude><address>Москва</address>"
        "<images><image>https://img.example.com/c1.jpg</image></images>"
        "<description_main><title>О проекте</title><text>Описание</text></description_main>"
        "<profits_main><profit_main><title>Парк</title><text>Рядом парк</text>"
        "<image>https://img.example.com/p.jpg</image></profit_main></profits_main>"
        f"<buildings>{''.join(buildings)}</buildings>"
        "<sales_info><sales_phone>+7 900</sales_phone><sales_address>Москва</sales_address>"
        "<sales_latitude>55.7</sales_latitude><sales_longitude>37.6</sales_longitude></sales_info>"
        "<developer><id>d-1</id><name>Застройщик</name><phone>+7 495</phone>"
        "<site>https://dev.example.com</site><logo>https://dev.example.com/logo.png</logo></developer>"
        "</complex></complexes>"
    )


# --- Realty ---

def realty_offer(i, tags=("plan", "floor-plan", ""), **over):
    fields = {
        "type": "продажа",
        "property-type": "жилая",
        "category": "квартира",
        "creation-date": "2023-01-02T10:00:00+03:00",
        "deal-status": "sale",
        "new-flat": "1",
        "rooms": "2",
        "floor": "3",
        "floors-total": "9",
        "building-name": "ЖК Тест",
        "yandex-building-id": "123",
        "yandex-house-id": "456",
        "building-state": "unfinished",
        "built-year": str(NEXT_YEAR),
        "ready-quarter": "4",
    }
    fields.update(over)
    images = "".join(
        f'<image tag="{t}">https://img.example.com/{i}/{n}.jpg</image>' if t else
        f"<image>https://img.example.com/{i}/{n}.jpg</image>"
        for n, t in enumerate(tags)
    )
    return (
        f'<offer internal-id="offer-{i}">{images}{_tags(fields)}'
        "<location><country>Россия</country><address>Москва, ул. Тверская, 1</address></location>"
        "<sales-agent><category>developer</category><phone>+7 900</phone></sales-agent>"
        "<price><value>5000000</value><currency>RUR</currency></price>"
        "<area><value>54.5</value><unit>кв. м</unit></area>"
        "<living-space><value>30</value><unit>кв. м</unit></living-space>"
        "</offer>"
    )


def realty_feed(offers, generation_date="2023-01-02T10:00:00+03:00"):
    return (
        '<realty-feed xmlns="http://webmaster.yandex.ru/schemas/feed/realty/2010-06">'
        f"<generation-date>{generation_date}</generation-date>{''.join(offers)}</realty-feed>"
    )
