"""
User profile and leaderboard schemas.

GET   /users/me       → UserResponse
PATCH /users/me       → ProfileUpdateRequest → UserResponse
GET   /users/{id}     → UserResponse
GET   /leaderboard    → LeaderboardResponse
GET   /wall/contributors → ContributorsResponse
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    username: Optional[str] = None
    image: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    total_carbon_saved: float
    total_commitments: int
    completed_milestones: int
    level: int
    badges: list[str]


class ProfileUpdateRequest(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=64)
    bio: Optional[str] = Field(default=None, max_length=500)
    location: Optional[str] = Field(default=None, max_length=128)


class LeaderboardEntry(BaseModel):
    rank: int
    user: UserResponse


class LeaderboardResponse(BaseModel):
    metric: str
    items: list[LeaderboardEntry]


class ContributorEntry(BaseModel):
    user: UserResponse
    total_carbon_saved: float
    commitment_count: int


class ContributorsResponse(BaseModel):
    items: list[ContributorEntry]
