from copy import deepcopy
from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse

app = FastAPI(title="Mock ERP API", version="1.0.0")

SEED_APPLICATIONS = [
    {
        "_id": "app_education",
        "applicationNumber": "APP2025001",
        "status": "pending_committee_approval",
        "requestedAmount": 100000,
        "beneficiary": {"name": "Fathima K"},
        "scheme": {"name": "Education Support"},
        "distributionTimeline": [
            {"description": "First term", "percentage": 40, "daysFromApproval": 0},
            {"description": "Second term", "percentage": 30, "daysFromApproval": 120},
            {"description": "Final term", "percentage": 30, "daysFromApproval": 240},
        ],
    },
    {
        "_id": "app_ration",
        "applicationNumber": "APP2025002",
        "status": "pending_committee_approval",
        "requestedAmount": 60000,
        "beneficiary": {"name": "Abdul Rahman"},
        "scheme": {"name": "Monthly Ration"},
        "distributionTimeline": [],
    },
    {
        "_id": "app_medical",
        "applicationNumber": "APP2025003",
        "status": "under_review",
        "requestedAmount": 75000,
        "beneficiary": {"name": "Mariyam P"},
        "scheme": {"name": "Medical Aid"},
        "distributionTimeline": [],
    },
]

applications = {}
decisions = []


def reset() -> None:
    applications.clear()
    applications.update({a["_id"]: deepcopy(a) for a in SEED_APPLICATIONS})
    decisions.clear()


reset()


def envelope(data=None, message="OK", success=True, status_code=200):
    return JSONResponse(
        status_code=status_code,
        content={"success": success, "message": message, "data": data},
    )


def paginate(items, page, limit):
    total = len(items)
    start = (page - 1) * limit
    return {
        "applications": items[start:start + limit],
        "pagination": {"page": page, "limit": limit, "total": total, "pages": max(1, -(-total // limit))},
    }


@app.get("/health")
def health(): return {"status": "ok"}


@app.get("/api/applications")
def list_applications(page: int = 1, limit: int = 10, status: str | None = None, search: str | None = None):
    items = list(applications.values())
    if status:
        items = [a for a in items if a["status"] == status]
    if search:
        items = [a for a in items if search.lower() in a["applicationNumber"].lower()]
    return envelope(paginate(items, page, limit))


@app.get("/api/applications/committee/pending")
def pending_committee(page: int = 1, limit: int = Query(10)):
    items = [a for a in applications.values() if a["status"] == "pending_committee_approval"]
    return envelope(paginate(items, page, limit))


@app.get("/api/applications/{application_id}")
def get_application(application_id: str):
    application = applications.get(application_id)
    if application is None:
        return envelope(message="Application not found", success=False, status_code=404)
    return envelope({"application": application})


@app.post("/api/applications/{application_id}/committee-decision")
def committee_decision(application_id: str, body: dict):
    application = applications.get(application_id)
    if application is None:
        return envelope(message="Application not found", success=False, status_code=404)
    if application["status"] != "pending_committee_approval":
        return envelope(message="Application is not awaiting committee approval", success=False)
    if not (body.get("comments") or "").strip():
        return envelope(message="Comments are required", success=False, status_code=400)

    decisions.append({"applicationId": application_id, **body})
    application["status"] = body["decision"]
    return envelope({"application": application}, message=f"Application {body['decision']}")
