from fastapi import APIRouter, Depends

from .. import crud
from ..database.connection import get_db
from ..dependencies import SessionContext, get_session
from ..errors import NotFound
from ..models.vote_model import Vote

vote_router = APIRouter(prefix="/votes", tags=["Vote"])


# ------------------------------
# CAST VOTE
# ------------------------------
@vote_router.post("", status_code=201)
def cast_vote(vote: Vote, db=Depends(get_db), session: SessionContext = Depends(get_session)):
    """
    Records the caller's vote. The voter always comes from the session,
    so a request body cannot vote on someone else's behalf.
    """
    recorded = crud.cast_vote(db, vote.election, vote.candidate, voter_id=session.user_id)
    return {"message": "Vote recorded successfully", "vote_id": str(recorded["_id"])}


# ------------------------------
# CHECK IF USER HAS ALREADY VOTED
# ------------------------------
@vote_router.get("/check/{election_id}")
def check_vote(election_id: str, db=Depends(get_db), session: SessionContext = Depends(get_session)):
    if not crud.get_election(db, election_id):
        raise NotFound("Election not found.")
    if crud.has_voted(db, election_id, session.user_id):
        return {"status": "already_voted"}
    return {"status": "not_voted", "message": "Voter can proceed to vote."}
