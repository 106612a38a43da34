from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime


class Candidate(BaseModel):
    name: str = Field(..., min_length=1, examples=["Jane Wanjiku"])
    party: str = Field(..., min_length=1, examples=["Progressive Students"])
    position: Optional[str] = None


class CandidateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    party: Optional[str] = Field(None, min_length=1)
    position: Optional[str] = None


class Election(BaseModel):
    title: str = Field(..., min_length=1, examples=["Student Council Election"])
    description: str = Field(..., min_length=1)
    election_type: List[str] = Field(..., examples=[["Student"]])
    start_date: datetime
    end_date: datetime

    @field_validator("election_type", mode="before")
    @classmethod
    def single_type_as_list(cls, value):
        # a single election type is accepted and stored as a one-item list
        if isinstance(value, str):
            return [value]
        return value


class ElectionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    election_type: Optional[List[str]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("election_type", mode="before")
    @classmethod
    def single_type_as_list(cls, value):
        if isinstance(value, str):
            return [value]
        return value
