from datetime import datetime
from typing import Optional, Dict, Literal, List

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

Condition = Literal["excellent", "fair", "poor"]
TreeStatus = Literal["pending", "approved", "rejected"]
ReviewStatus = Literal["approved", "rejected"]
Role = Literal["user", "supervisor", "admin"]
BadgeType = Literal["education", "tree_count"]


class CamelModel(BaseModel):
    """Base model speaking camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class TreeCreate(CamelModel):
    species: str = Field(min_length=1, max_length=200)
    condition: Condition
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    height_floors: Optional[int] = Field(default=None, gt=0)
    height_manual: Optional[float] = Field(default=None, gt=0)
    circumference_hands: Optional[int] = Field(default=None, gt=0)
    circumference_manual: Optional[float] = Field(default=None, gt=0)
    excessive_pruning: bool = False
    excessive_ground_cover: bool = False
    damaged: bool = False
    notes: Optional[str] = None


class TreeOut(CamelModel):
    id: int
    species: str
    condition: str
    latitude: float
    longitude: float
    height_floors: Optional[int] = None
    height_manual: Optional[float] = None
    circumference_hands: Optional[int] = None
    circumference_manual: Optional[float] = None
    excessive_pruning: bool = False
    excessive_ground_cover: bool = False
    damaged: bool = False
    photo_url: Optional[str] = None
    notes: Optional[str] = None
    contributor_id: str
    status: str
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    created_at: datetime


class RecentTreeOut(TreeOut):
    contributor: str


class TreeReview(CamelModel):
    status: ReviewStatus
    notes: Optional[str] = None


class TreeStats(CamelModel):
    total_trees: int
    species: int
    contributors: int
    healthy_percentage: int
    species_distribution: Dict[str, int]
    condition_distribution: Dict[str, int]
    recent_trees: List[RecentTreeOut]


class TreeSpeciesOut(CamelModel):
    id: int
    name: str
    scientific_name: Optional[str] = None
    description: Optional[str] = None
    characteristics: Optional[str] = None
    care_instructions: Optional[str] = None
    icon: Optional[str] = None


class BadgeCreate(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    type: BadgeType
    requirement: Optional[int] = Field(default=None, ge=0)
    icon: Optional[str] = None


class BadgeOut(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    type: str
    requirement: Optional[int] = None
    icon: Optional[str] = None
    created_at: Optional[datetime] = None


class UserBadgeOut(CamelModel):
    id: int
    user_id: str
    badge_id: int
    awarded_at: Optional[datetime] = None
    badge: BadgeOut


class UserCreate(CamelModel):
    id: str = Field(min_length=1)
    email: EmailStr
    role: Role = "user"
    password: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class UserOut(CamelModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserProfileOut(UserOut):
    badges: List[UserBadgeOut] = []
    tree_count: int = 0
    approved_tree_count: int = 0


class RoleUpdate(CamelModel):
    role: Role


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class MessageOut(BaseModel):
    message: str


class LoginOut(CamelModel):
    message: str
    user: UserOut
