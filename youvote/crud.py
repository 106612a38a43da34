import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from . import config
from .errors import Conflict, InvalidIdentifier, NotFound, PermissionDenied
from .services.status import ONGOING, as_utc, classify, validate_window

logger = logging.getLogger(__name__)


def _users(db):
    return db[config.USERS_COLLECTION_NAME]


def _elections(db):
    return db[config.ELECTIONS_COLLECTION_NAME]


def _candidates(db):
    return db[config.CANDIDATES_COLLECTION_NAME]


def _votes(db):
    return db[config.VOTES_COLLECTION_NAME]


def to_object_id(value: str, what: str = "ID") -> ObjectId:
    # ObjectId(None) would mint a fresh id instead of failing
    if not isinstance(value, (str, ObjectId)):
        raise InvalidIdentifier(f"Invalid {what}")
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise InvalidIdentifier(f"Invalid {what}")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _naive_utc(dt: datetime) -> datetime:
    # stored as naive UTC, which is what pymongo hands back
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


# ==============================================================================
# USERS
# ==============================================================================

def create_user(db, first_name: str, last_name: str, email: str, role: str = "voter",
                email_verified: bool = False, email_verification_code: Optional[str] = None) -> dict:
    user = {
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "email_verified": email_verified,
        "email_verification_code": email_verification_code,
        "role": role,
        "created_at": _utcnow(),
    }
    if get_user_by_email(db, email):
        raise Conflict("Email is already in use.")
    try:
        result = _users(db).insert_one(user)
    except DuplicateKeyError:
        logger.warning(f"User with email {email} already exists.")
        raise Conflict("Email is already in use.")
    user["_id"] = result.inserted_id
    logger.info(f"Created {role} user {email}")
    return user


def get_user_by_email(db, email: str) -> Optional[dict]:
    return _users(db).find_one({"email": email})


def get_user_by_id(db, user_id: str) -> Optional[dict]:
    return _users(db).find_one({"_id": to_object_id(user_id, "user ID")})


def update_user(db, user_id, fields: dict, unset: tuple = ()) -> None:
    update = {}
    if fields:
        update["$set"] = fields
    if unset:
        update["$unset"] = {name: "" for name in unset}
    if update:
        _users(db).update_one({"_id": user_id}, update)


def serialize_user(user: dict) -> dict:
    return {
        "id": str(user["_id"]),
        "first_name": user.get("first_name"),
        "last_name": user.get("last_name"),
        "email": user.get("email"),
        "email_verified": bool(user.get("email_verified")),
        "role": user.get("role", "voter"),
    }


# ==============================================================================
# ELECTIONS
# ==============================================================================

def create_election(db, data: dict, created_by: str) -> dict:
    start, end = validate_window(data.get("start_date"), data.get("end_date"))
    now = _utcnow()
    election = {
        "title": data["title"],
        "description": data["description"],
        "election_type": list(data.get("election_type") or []),
        "start_date": _naive_utc(start),
        "end_date": _naive_utc(end),
        "created_by": created_by,
        "created_at": now,
        "updated_at": now,
    }
    result = _elections(db).insert_one(election)
    election["_id"] = result.inserted_id
    logger.info(f"Election created: {election['title']} ({result.inserted_id})")
    return election


def list_elections(db) -> List[dict]:
    return list(_elections(db).find().sort([("created_at", DESCENDING), ("_id", DESCENDING)]))


def get_election(db, election_id: str) -> Optional[dict]:
    return _elections(db).find_one({"_id": to_object_id(election_id, "election ID")})


def _check_owner(election: dict, user_id: str, is_admin: bool, action: str):
    if str(election.get("created_by")) != user_id and not is_admin:
        raise PermissionDenied(f"Not authorized to {action} this election")


def update_election(db, election_id: str, changes: dict, user_id: str, is_admin: bool) -> dict:
    election = get_election(db, election_id)
    if not election:
        raise NotFound("Election not found")
    _check_owner(election, user_id, is_admin, "update")

    changes = {k: v for k, v in changes.items() if v is not None}
    if "start_date" in changes or "end_date" in changes:
        # partial date edits are validated against the stored counterpart
        start, end = validate_window(
            changes.get("start_date", election.get("start_date")),
            changes.get("end_date", election.get("end_date")),
        )
        changes["start_date"] = _naive_utc(start)
        changes["end_date"] = _naive_utc(end)
    changes["updated_at"] = _utcnow()

    _elections(db).update_one({"_id": election["_id"]}, {"$set": changes})
    return _elections(db).find_one({"_id": election["_id"]})


def delete_election(db, election_id: str, user_id: str, is_admin: bool) -> None:
    election = get_election(db, election_id)
    if not election:
        raise NotFound("Election not found")
    _check_owner(election, user_id, is_admin, "delete")

    if config.MONGO_TRANSACTIONS:
        _delete_election_in_transaction(db, election)
    else:
        _delete_election_with_compensation(db, election)
    logger.info(f"Election deleted: {election.get('title')} ({election['_id']})")


def _delete_election_in_transaction(db, election: dict):
    eid = election["_id"]

    def cascade(session):
        _votes(db).delete_many({"election": eid}, session=session)
        _candidates(db).delete_many({"election": eid}, session=session)
        _elections(db).delete_one({"_id": eid}, session=session)

    with db.client.start_session() as session:
        session.with_transaction(cascade)


def _delete_election_with_compensation(db, election: dict):
    """
    Votes, candidates, then the election. If a later step fails the documents
    already removed are put back before the error propagates.
    """
    eid = election["_id"]
    votes = list(_votes(db).find({"election": eid}))
    candidates = list(_candidates(db).find({"election": eid}))

    steps = [
        (_votes(db), {"election": eid}, votes),
        (_candidates(db), {"election": eid}, candidates),
        (_elections(db), {"_id": eid}, [election]),
    ]
    done = []
    try:
        for collection, query, snapshot in steps:
            collection.delete_many(query)
            done.append((collection, snapshot))
    except PyMongoError as e:
        logger.warning(f"Cascading delete of election {eid} failed ({e}); restoring removed documents")
        for collection, snapshot in reversed(done):
            if not snapshot:
                continue
            try:
                collection.insert_many(snapshot)
            except PyMongoError as restore_error:
                logger.error(
                    f"Could not restore {len(snapshot)} document(s) into {collection.name} "
                    f"for election {eid}: {restore_error}"
                )
        raise


def serialize_election(election: dict) -> dict:
    data = {
        "id": str(election["_id"]),
        "title": election.get("title"),
        "description": election.get("description"),
        "election_type": election.get("election_type", []),
        "start_date": None,
        "end_date": None,
        "created_by": str(election["created_by"]) if election.get("created_by") else None,
    }
    for key in ("start_date", "end_date", "created_at", "updated_at"):
        value = election.get(key)
        if isinstance(value, datetime):
            data[key] = as_utc(value).isoformat()
    return data


# ==============================================================================
# CANDIDATES
# ==============================================================================

def _require_election(db, election_id: str) -> dict:
    election = get_election(db, election_id)
    if not election:
        raise NotFound("Election not found")
    return election


def create_candidate(db, election_id: str, data: dict) -> dict:
    election = _require_election(db, election_id)
    candidate = {
        "name": data["name"],
        "party": data["party"],
        "position": data.get("position"),
        "election": election["_id"],
    }
    result = _candidates(db).insert_one(candidate)
    candidate["_id"] = result.inserted_id
    logger.info(f"Candidate {candidate['name']} added to election {election['_id']}")
    return candidate


def list_candidates(db, election_id: str) -> List[dict]:
    eid = to_object_id(election_id, "election ID")
    return list(_candidates(db).find({"election": eid}).sort("_id", 1))


def get_candidate(db, election_id: str, candidate_id: str) -> Optional[dict]:
    return _candidates(db).find_one({
        "_id": to_object_id(candidate_id, "candidate ID"),
        "election": to_object_id(election_id, "election ID"),
    })


def update_candidate(db, election_id: str, candidate_id: str, changes: dict) -> dict:
    candidate = get_candidate(db, election_id, candidate_id)
    if not candidate:
        raise NotFound("Candidate not found")
    changes = {k: v for k, v in changes.items() if v is not None}
    if changes:
        _candidates(db).update_one({"_id": candidate["_id"]}, {"$set": changes})
    return _candidates(db).find_one({"_id": candidate["_id"]})


def delete_candidate(db, election_id: str, candidate_id: str) -> None:
    candidate = get_candidate(db, election_id, candidate_id)
    if not candidate:
        raise NotFound("Candidate not found")
    _votes(db).delete_many({"candidate": candidate["_id"]})
    _candidates(db).delete_one({"_id": candidate["_id"]})
    logger.info(f"Candidate {candidate_id} removed from election {election_id}")


def serialize_candidate(candidate: dict) -> dict:
    return {
        "id": str(candidate["_id"]),
        "name": candidate.get("name"),
        "party": candidate.get("party"),
        "position": candidate.get("position"),
        "election": str(candidate.get("election")),
    }


# ==============================================================================
# VOTES
# ==============================================================================

def has_voted(db, election_id: str, voter_id: str) -> bool:
    eid = to_object_id(election_id, "election ID")
    return _votes(db).find_one({"election": eid, "voter": voter_id}) is not None


def cast_vote(db, election_id: str, candidate_id: str, voter_id: str, now: Optional[datetime] = None) -> dict:
    election = _require_election(db, election_id)
    candidate = get_candidate(db, election_id, candidate_id)
    if not candidate:
        raise NotFound("Candidate not found in election.")

    status = classify(election.get("start_date"), election.get("end_date"), now=now)
    if status.state != ONGOING:
        raise PermissionDenied(f"Voting is not open for this election ({status.state}).")

    if has_voted(db, election_id, voter_id):
        raise Conflict("Voter has already voted.")

    vote = {
        "election": election["_id"],
        "candidate": candidate["_id"],
        "voter": voter_id,
        "created_at": _utcnow(),
    }
    try:
        result = _votes(db).insert_one(vote)
    except DuplicateKeyError:
        # lost a race with a concurrent request from the same voter
        logger.warning(f"Duplicate vote rejected for voter {voter_id} in election {election_id}")
        raise Conflict("Voter has already voted.")
    vote["_id"] = result.inserted_id
    logger.info(f"Vote cast in election {election_id}")
    return vote


def count_votes_by_candidate(db, election_id: str) -> Dict[str, int]:
    eid = to_object_id(election_id, "election ID")
    pipeline = [
        {"$match": {"election": eid}},
        {"$group": {"_id": "$candidate", "count": {"$sum": 1}}},
    ]
    return {str(row["_id"]): row["count"] for row in _votes(db).aggregate(pipeline)}
