"""Scrapy items for marketplace content that ends up in a sitemap."""

import scrapy


class VehicleItem(scrapy.Item):
    """A listed vehicle from ``/api/publicproducts``."""

    # Identifiers
    id = scrapy.Field()
    slug = scrapy.Field()

    # Vehicle info
    make = scrapy.Field()
    model = scrapy.Field()
    year = scrapy.Field()
    features = scrapy.Field()  # normalised list of strings

    # Media
    images = scrapy.Field()  # list of raw image URL strings

    # Metadata
    updated_at = scrapy.Field()


class ArticleItem(scrapy.Item):
    """A blog post from ``/api/blogs``."""

    id = scrapy.Field()
    slug = scrapy.Field()
    title = scrapy.Field()
    body = scrapy.Field()
    featured_image = scrapy.Field()
    updated_at = scrapy.Field()


class AccessoryItem(scrapy.Item):
    """An accessory listing from ``/api/accessories``."""

    id = scrapy.Field()
    slug = scrapy.Field()
    title = scrapy.Field()
    price = scrapy.Field()
    images = scrapy.Field()
    updated_at = scrapy.Field()


class StaticPageItem(scrapy.Item):
    """A hand-maintained page of the site (home, pricing, …)."""

    path = scrapy.Field()
    loc = scrapy.Field()
    priority = scrapy.Field()
    changefreq = scrapy.Field()
