from fastapi import APIRouter, Depends

from .. import crud
from ..database.connection import get_db
from ..dependencies import SessionContext, require_admin
from ..errors import NotFound
from ..models.election_model import Candidate, CandidateUpdate

router = APIRouter(prefix="/candidates", tags=["Candidate"])


@router.get("/{election_id}")
def get_candidates(election_id: str, db=Depends(get_db)):
    if not crud.get_election(db, election_id):
        raise NotFound("Election not found")
    candidates = [crud.serialize_candidate(c) for c in crud.list_candidates(db, election_id)]
    return {"success": True, "count": len(candidates), "data": candidates}


@router.post("/{election_id}", status_code=201)
def add_candidate(election_id: str, candidate: Candidate, db=Depends(get_db),
                  session: SessionContext = Depends(require_admin)):
    created = crud.create_candidate(db, election_id, candidate.model_dump())
    return {"success": True, "data": crud.serialize_candidate(created)}


@router.put("/{election_id}/{candidate_id}")
def edit_candidate(election_id: str, candidate_id: str, changes: CandidateUpdate, db=Depends(get_db),
                   session: SessionContext = Depends(require_admin)):
    updated = crud.update_candidate(db, election_id, candidate_id, changes.model_dump(exclude_unset=True))
    return {"success": True, "data": crud.serialize_candidate(updated)}


@router.delete("/{election_id}/{candidate_id}")
def remove_candidate(election_id: str, candidate_id: str, db=Depends(get_db),
                     session: SessionContext = Depends(require_admin)):
    crud.delete_candidate(db, election_id, candidate_id)
    return {"success": True, "data": {}}
