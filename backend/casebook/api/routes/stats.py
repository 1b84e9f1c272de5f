from fastapi import APIRouter, Depends
from sqlmodel import Session

from casebook.db.session import get_session
from casebook.services import listing, store

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("")
def stats(session: Session = Depends(get_session)):
    cases = store.list_cases(session)

    by_status: dict[str, int] = {}
    for c in cases:
        by_status[c.status] = by_status.get(c.status, 0) + 1

    # last 10 cases
    latest = listing.project(cases)[:10]

    return {
        "totals": {
            "cases": len(cases),
        },
        "by_status": by_status,
        "filters": {
            field: [{"value": value, "count": count} for value, count in values]
            for field, values in listing.distinct_values(cases).items()
        },
        "latest_cases": [c.model_dump() for c in latest],
    }
