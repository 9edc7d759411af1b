# app/schemas.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class LocationDetails(BaseModel):
    zipcode: Optional[str] = None
    address_text: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None


class FAQ(BaseModel):
    faq_id: str
    question: str
    answer: Optional[str] = None
    asked_by: str


class FAQIn(BaseModel):
    question: str = Field(..., min_length=1)
    answer: Optional[str] = None


class ListingCreate(BaseModel):
    name: str = Field(..., min_length=1)
    expected_price: float = Field(..., gt=0, allow_inf_nan=False)
    bid_start_date: int
    bid_end_date: int
    video_urls: List[str] = []
    image_urls: List[str] = []
    description_text: str = ""
    location: Coordinates
    location_name: Optional[str] = None
    category_id: Optional[str] = None
    sub_category_id: Optional[str] = None
    refurbished: Optional[bool] = None
    location_details: Optional[LocationDetails] = None


class ListingUpdate(BaseModel):
    """Patch body; only the fields a client actually sends are applied."""
    name: Optional[str] = None
    expected_price: Optional[float] = Field(None, allow_inf_nan=False)
    bid_start_date: Optional[int] = None
    bid_end_date: Optional[int] = None
    video_urls: Optional[List[str]] = None
    image_urls: Optional[List[str]] = None
    description_text: Optional[str] = None
    verified: Optional[bool] = None
    category_id: Optional[str] = None
    sub_category_id: Optional[str] = None
    refurbished: Optional[bool] = None
    add_faq: Optional[FAQIn] = None
    location_details: Optional[LocationDetails] = None


class ListingOut(BaseModel):
    listing_id: str
    name: str
    expected_price: float
    bid_start_date: int
    bid_end_date: int
    video_urls: List[str] = []
    image_urls: List[str] = []
    description_text: Optional[str] = None
    owner_id: str
    location_name: Optional[str] = None
    location: Optional[Coordinates] = None
    verified: bool = False
    category_id: Optional[str] = None
    sub_category_id: Optional[str] = None
    refurbished: Optional[bool] = None
    faqs: List[FAQ] = []
    location_details: Optional[LocationDetails] = None
    total_bids: int = 0
    highest_bid_price: Optional[float] = None
    created_at: int
    updated_at: int
    model_config = ConfigDict(from_attributes=True)


class NearbyListingOut(ListingOut):
    distance: float


class SearchCriteria(BaseModel):
    name: Optional[str] = None
    category_id: Optional[str] = None
    sub_category_id: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    verified: Optional[bool] = None
    refurbished: Optional[bool] = None
    owner_id: Optional[str] = None
    bid_start_date: Optional[int] = None
    bid_end_date: Optional[int] = None
    location: Optional[Coordinates] = None
    location_details: Optional[LocationDetails] = None


class BidIn(BaseModel):
    bid_price: float = Field(..., allow_inf_nan=False)


class BidOut(BaseModel):
    bid_id: str
    listing_id: str
    user_id: str
    bid_price: float
    created_at: int


class BidUser(BaseModel):
    name: Optional[str] = None
    phone_number: Optional[str] = None
    email_id: Optional[str] = None


class BidWithBidder(BaseModel):
    bid_id: str
    listing_id: str
    bid_price: float
    created_at: int
    user: Optional[BidUser] = None
