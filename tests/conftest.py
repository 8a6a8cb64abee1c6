"""Shared fixtures: sample API records, settings, and a fake content API."""

import json

import httpx
import pytest

from car_sitemap_sync.settings import Settings

SITE = "https://www.diksxcars.co.ke"
API = "https://backend.diksxcars.co.ke"


@pytest.fixture
def vehicle_records():
    return [
        {
            "id": 1,
            "slug": "2019-toyota-prado",
            "make": "Toyota",
            "model": "Prado",
            "year": 2019,
            "features": "Sunroof, Leather seats",
            "images": [
                {"imageUrl": "https://res.cloudinary.com/diksx/prado-1.jpg"},
                "https://res.cloudinary.com/diksx/prado-2.jpg",
            ],
            "updatedAt": "2025-01-10T08:00:00Z",
            "isActive": "true",
        },
        {
            "id": 2,
            "make": "Mazda",
            "model": "CX-5",
            "year": 2017,
            "features": ["AWD"],
            "images": [],
            "updatedAt": "2025-01-11T08:00:00Z",
        },
        {
            "id": 3,
            "slug": "sold-subaru",
            "make": "Subaru",
            "isActive": "false",
        },
    ]


@pytest.fixture
def article_records():
    return [
        {
            "id": 7,
            "slug": "buying-a-used-car",
            "title": "Buying a <used> car",
            "body": 'Intro <img src="https://res.cloudinary.com/diksx/blog/hero.jpg"> text',
            "updatedAt": "2025-01-05",
        },
    ]


@pytest.fixture
def accessory_records():
    return [
        {
            "id": 11,
            "slug": "roof-rack",
            "title": "Roof Rack",
            "price": 15000,
            "imageUrls": ["https://res.cloudinary.com/diksx/rack.jpg"],
            "isActive": "true",
            "status": "active",
        },
        {
            "id": 12,
            "slug": "pending-mats",
            "title": "Floor mats",
            "isActive": "true",
            "status": "pending",
        },
    ]


def api_transport(vehicles=(), articles=(), accessories=(), *, overrides=None):
    """A MockTransport serving the three content endpoints.

    *overrides* maps an endpoint path to an ``httpx.Response`` (or an
    exception instance to raise) to simulate upstream failures.
    """
    bodies = {
        "/api/publicproducts": list(vehicles),
        "/api/blogs": list(articles),
        "/api/accessories": list(accessories),
    }
    overrides = overrides or {}

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path in overrides:
            override = overrides[path]
            if isinstance(override, Exception):
                raise override
            return override
        if path not in bodies:
            return httpx.Response(404, text="not found")
        return httpx.Response(200, text=json.dumps(bodies[path]))

    return httpx.MockTransport(handler)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        site_url=SITE,
        api_url=API,
        output_dir=tmp_path / "public",
        secondary_dir=tmp_path / "dist",
        skip_validation=True,
    )


@pytest.fixture
def make_api():
    return api_transport
