from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

AdStatus = Literal["Active", "Paused", "Draft", "Rejected"]
# Rejected is only set through moderation
NewAdStatus = Literal["Active", "Paused", "Draft"]


class AdCreate(BaseModel):
    # required fields are checked against the "ad-form" schema rules
    title: Optional[str] = None
    description: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)
    video_urls: List[str] = Field(default_factory=list)
    target_url: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    category: Optional[str] = None
    is_anonymous: bool = False
    status: NewAdStatus = "Active"


class AdUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    image_urls: Optional[List[str]] = None
    video_urls: Optional[List[str]] = None
    target_url: Optional[str] = Field(default=None, min_length=1, max_length=255)
    price: Optional[Decimal] = Field(default=None, gt=0)
    category: Optional[str] = None
    is_anonymous: Optional[bool] = None
    status: Optional[AdStatus] = None


class ActivationRequest(BaseModel):
    active: bool


class AdResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    title: str
    description: str
    author: str
    is_anonymous: bool
    image_urls: List[str] = Field(default_factory=list)
    video_urls: List[str] = Field(default_factory=list)
    target_url: str
    price: Decimal
    category: str
    clicks: int
    likes: int
    status: str
    user_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    # set when a requested Active status was downgraded by the solvency check
    policy_override: Optional[str] = None


class LikeResponse(BaseModel):
    success: bool
    likes: int


class TrendItem(BaseModel):
    title: str
    clicks: int


class LikedItem(BaseModel):
    title: str
    likes: int


class CategoryStat(BaseModel):
    name: str
    value: int


class AdStatsResponse(BaseModel):
    total: int
    active: int
    total_clicks: int
    total_likes: int
    avg_price: float
    trend: List[TrendItem] = Field(default_factory=list)
    top_liked: List[LikedItem] = Field(default_factory=list)
    category_stats: List[CategoryStat] = Field(default_factory=list)


class AuthorItem(BaseModel):
    username: str
    role: str
