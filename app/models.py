# app/models.py
"""SQLAlchemy ORM models for persisted entities.

Listings embed their bids, FAQs and location details as JSON documents. The
coordinate of a listing lives in its own `geo_points` table so spatial
pre-filtering does not touch listing rows. `users` is owned by the identity
subsystem; this service only reads bidder summaries from it.
"""
from sqlalchemy import Column, Integer, BigInteger, Text, Float, Boolean, JSON, Index
from sqlalchemy.dialects.postgresql import JSONB
from .db import Base

Document = JSON().with_variant(JSONB(), "postgresql")


class Listing(Base):
    __tablename__ = "listings"
    listing_id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    expected_price = Column(Float, nullable=False)
    bid_start_date = Column(BigInteger, nullable=False)
    bid_end_date = Column(BigInteger, nullable=False)
    video_urls = Column(Document, nullable=False, default=list)
    image_urls = Column(Document, nullable=False, default=list)
    description_text = Column(Text, nullable=False, default="")
    owner_id = Column(Text, nullable=False, index=True)
    location_name = Column(Text)
    verified = Column(Boolean, nullable=False, default=False)
    category_id = Column(Text)
    sub_category_id = Column(Text)
    refurbished = Column(Boolean)
    faqs = Column(Document, nullable=False, default=list)
    location_details = Column(Document)
    bids = Column(Document, nullable=False, default=list)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=False)


class GeoPoint(Base):
    __tablename__ = "geo_points"
    listing_id = Column(Text, primary_key=True)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    geohash = Column(BigInteger)
    hash_key = Column(BigInteger)
    created_at = Column(BigInteger, nullable=False)


class UserProfile(Base):
    __tablename__ = "users"
    sub = Column(Text, primary_key=True)
    name = Column(Text)
    phone_number = Column(Text)
    email_id = Column(Text)

Index("idx_listings_category", Listing.category_id)
Index("idx_geo_points_lat_lng", GeoPoint.lat, GeoPoint.lng)
Index("idx_geo_points_hash_key", GeoPoint.hash_key)
