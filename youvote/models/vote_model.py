from pydantic import BaseModel


class Vote(BaseModel):
    election: str
    candidate: str
