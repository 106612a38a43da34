from fastapi import APIRouter, Depends

from .. import crud
from ..database.connection import get_db
from ..dependencies import SessionContext, get_session, require_admin
from ..errors import NotFound, StatusUndetermined
from ..models.election_model import Election, ElectionUpdate
from ..services.results import election_results
from ..services.status import as_utc, classify

router = APIRouter(tags=["Election"])


def _with_status(election: dict) -> dict:
    data = crud.serialize_election(election)
    try:
        data["status"] = classify(election.get("start_date"), election.get("end_date")).to_dict()
    except StatusUndetermined:
        # listing stays readable; the dedicated status endpoint reports the error
        data["status"] = None
    return data


def _load(db, election_id: str) -> dict:
    election = crud.get_election(db, election_id)
    if not election:
        raise NotFound("Election not found")
    return election


@router.post("/elections", status_code=201)
def create_election(election: Election, db=Depends(get_db), session: SessionContext = Depends(require_admin)):
    created = crud.create_election(db, election.model_dump(), created_by=session.user_id)
    return {"success": True, "data": _with_status(created)}


@router.get("/elections")
def get_all_elections(db=Depends(get_db)):
    elections = [_with_status(e) for e in crud.list_elections(db)]
    return {"success": True, "count": len(elections), "data": elections}


@router.get("/election/{election_id}")
@router.get("/elections/{election_id}")
def get_election(election_id: str, db=Depends(get_db)):
    return {"success": True, "data": _with_status(_load(db, election_id))}


@router.put("/elections/{election_id}")
def update_election(election_id: str, changes: ElectionUpdate, db=Depends(get_db),
                    session: SessionContext = Depends(get_session)):
    updated = crud.update_election(
        db, election_id, changes.model_dump(exclude_unset=True),
        user_id=session.user_id, is_admin=session.is_admin,
    )
    return {"success": True, "data": _with_status(updated)}


@router.delete("/elections/{election_id}")
def delete_election(election_id: str, db=Depends(get_db), session: SessionContext = Depends(get_session)):
    crud.delete_election(db, election_id, user_id=session.user_id, is_admin=session.is_admin)
    return {"success": True, "data": {}}


@router.get("/elections/{election_id}/status")
def get_election_status(election_id: str, db=Depends(get_db)):
    election = _load(db, election_id)
    status = classify(election.get("start_date"), election.get("end_date"))
    return {"success": True, "data": status.to_dict()}


@router.get("/elections/{election_id}/results")
def get_election_results(election_id: str, db=Depends(get_db)):
    election, table = election_results(db, election_id)
    if table.message:
        return {"success": True, "message": table.message, "data": []}

    return {
        "success": True,
        "data": {
            "election": {
                "id": str(election["_id"]),
                "title": election.get("title"),
                "type": election.get("election_type", []),
                "start_date": as_utc(election["start_date"]).isoformat() if election.get("start_date") else None,
                "end_date": as_utc(election["end_date"]).isoformat() if election.get("end_date") else None,
            },
            "total_votes": table.total_votes,
            "results": [entry.to_dict() for entry in table.entries],
            "winners": [entry.candidate["id"] for entry in table.winners],
            "has_votes": table.has_votes,
        },
    }
