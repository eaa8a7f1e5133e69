import pytest
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import Developer, Enquiry, Lead, LeadStatus, Project, SalesStage


@pytest.fixture
def enquiry(db):
    row = Enquiry(
        first_name="Jane",
        last_name="Doe",
        email="jane@example.ae",
        phone="+971501234567",
        subject="Property Enquiry",
        message="Property: Creek Views",
        nationality="Emirati",
        status=LeadStatus.HOT,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


# ==================== DEVELOPERS ====================

def test_developer_crud(client, admin_headers):
    created = client.post("/api/admin/developers", json={"name": "  Damac  "}, headers=admin_headers)
    assert created.status_code == 201
    developer_id = created.json()["data"]["id"]
    assert created.json()["data"]["name"] == "Damac"
    assert created.json()["data"]["project_count"] == 0

    listed = client.get("/api/admin/developers", params={"search": "dam"}, headers=admin_headers)
    assert [d["name"] for d in listed.json()["data"]] == ["Damac"]

    updated = client.put(
        f"/api/admin/developers/{developer_id}", json={"website": "https://damac.example"}, headers=admin_headers
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["website"] == "https://damac.example"
    assert updated.json()["data"]["name"] == "Damac"

    empty = client.put(f"/api/admin/developers/{developer_id}", json={}, headers=admin_headers)
    assert empty.status_code == 400
    assert empty.json()["detail"] == "No fields to update"

    assert client.delete(f"/api/admin/developers/{developer_id}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/admin/developers/{developer_id}", headers=admin_headers).status_code == 404


def test_developer_name_required(client, admin_headers):
    response = client.post("/api/admin/developers", json={"name": "   "}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Name is required"


def test_developer_with_projects_cannot_be_deleted(client, db, admin_headers, developer):
    db.add(Project(title="Creek Views", developer_id=developer.id))
    db.commit()

    response = client.delete(f"/api/admin/developers/{developer.id}", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"].startswith("Cannot delete developer with existing projects")


# ==================== PROJECTS ====================

def test_project_crud_keeps_developer_count(client, db, admin_headers, developer):
    created = client.post("/api/admin/projects", json={
        "title": "Creek Views",
        "type": "Apartment",
        "unit_types": ["One", "Two"],
        "min_price": 900000,
        "developer_id": str(developer.id),
    }, headers=admin_headers)
    assert created.status_code == 201
    project = created.json()["data"]
    assert project["type"] == ["Apartment"]
    assert project["status"] == "active"
    assert project["Company"]["name"] == "Emaar Properties"

    db.expire_all()
    assert db.get(Developer, developer.id).project_count == 1

    updated = client.put(f"/api/admin/projects/{project['id']}", json={"status": "draft"}, headers=admin_headers)
    assert updated.status_code == 200
    assert updated.json()["data"]["title"] == "Creek Views"
    db.expire_all()
    assert db.get(Developer, developer.id).project_count == 0

    listed = client.get("/api/admin/projects", params={"status": "draft"}, headers=admin_headers)
    assert listed.json()["pagination"]["total"] == 1
    assert client.get("/api/admin/projects", params={"status": "active"}, headers=admin_headers).json()["data"] == []

    assert client.delete(f"/api/admin/projects/{project['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/projects/{project['id']}").status_code == 404


def test_project_validation(client, admin_headers):
    missing_title = client.post("/api/admin/projects", json={"city": "Dubai"}, headers=admin_headers)
    assert missing_title.status_code == 400
    assert missing_title.json()["detail"] == "Title is required"

    unknown_developer = client.post("/api/admin/projects", json={
        "title": "Orphan",
        "developer_id": "00000000-0000-0000-0000-000000000000",
    }, headers=admin_headers)
    assert unknown_developer.status_code == 400
    assert unknown_developer.json()["detail"] == "Developer not found"

    bad_lat = client.post("/api/admin/projects", json={"title": "X", "location_lat": 120}, headers=admin_headers)
    assert bad_lat.status_code == 422


def test_project_list_developer_filter(client, db, admin_headers, developer):
    db.add_all([Project(title="Unassigned"), Project(title="Creek Views", developer_id=developer.id)])
    db.commit()

    def listed(**params):
        return client.get("/api/admin/projects", params=params, headers=admin_headers).json()

    assert listed()["pagination"]["total"] == 2
    assert [p["title"] for p in listed(developer_id=str(developer.id))["data"]] == ["Creek Views"]
    assert listed(developer_id="not-a-uuid")["data"] == []
    assert listed(developer_id="not-a-uuid")["pagination"]["total"] == 0


def test_project_write_clears_listing_cache(client, admin_headers, monkeypatch):
    from app.services.listing_cache import listing_cache

    cleared = []
    monkeypatch.setattr(listing_cache, "clear", lambda: cleared.append(True))
    client.post("/api/admin/projects", json={"title": "Creek Views"}, headers=admin_headers)
    assert cleared == [True]


# ==================== ENQUIRIES ====================

def test_enquiry_list_and_search(client, admin_headers, enquiry):
    response = client.get("/api/admin/enquiries", params={"status": "hot", "search": "creek"}, headers=admin_headers)
    assert response.status_code == 200
    assert [e["id"] for e in response.json()["data"]] == [enquiry.id]

    assert client.get("/api/admin/enquiries", params={"status": "WARM"}, headers=admin_headers).json()["data"] == []
    assert client.get("/api/admin/enquiries", params={"status": "bogus"}, headers=admin_headers).json()["data"] == []


def test_enquiry_create_requires_contact(client, admin_headers):
    response = client.post("/api/admin/enquiries", json={"first_name": "Ali"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Email and phone are required"

    created = client.post("/api/admin/enquiries", json={
        "first_name": "Ali",
        "email": "ali@example.ae",
        "phone": "0501234567",
    }, headers=admin_headers)
    assert created.status_code == 201
    assert created.json()["data"]["status"] == "HOT"


def test_enquiry_update_keeps_unset_fields(client, admin_headers, enquiry):
    response = client.put(
        f"/api/admin/enquiries/{enquiry.id}", json={"status": "WARM", "email": None}, headers=admin_headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "WARM"
    assert data["email"] == "jane@example.ae"

    invalid = client.put(f"/api/admin/enquiries/{enquiry.id}", json={"status": "LUKEWARM"}, headers=admin_headers)
    assert invalid.status_code == 422

    assert client.delete(f"/api/admin/enquiries/{enquiry.id}", headers=admin_headers).status_code == 200
    assert client.put("/api/admin/enquiries/9999", json={}, headers=admin_headers).status_code == 404


# ==================== LEADS ====================

def test_lead_crud(client, admin_headers):
    missing = client.post("/api/admin/leads", json={"name": "Sam"}, headers=admin_headers)
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Name and phone are required"

    bad_phone = client.post("/api/admin/leads", json={"name": "Sam", "phone": "call me"}, headers=admin_headers)
    assert bad_phone.status_code == 400
    assert bad_phone.json()["detail"] == "Please enter a valid phone number"

    created = client.post("/api/admin/leads", json={
        "name": "Sam",
        "phone": "+971 55 765 4321",
        "project_name": "Creek Views",
        "price": 1200000,
    }, headers=admin_headers)
    assert created.status_code == 201
    lead = created.json()["data"]
    assert lead["status"] == "HOT"
    assert lead["sales_stage"] == "New Inquiry"

    updated = client.put(
        f"/api/admin/leads/{lead['id']}",
        json={"sales_stage": "Site Visit Scheduled", "status": "WARM"},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["sales_stage"] == "Site Visit Scheduled"
    assert updated.json()["data"]["project_name"] == "Creek Views"

    bad_stage = client.put(f"/api/admin/leads/{lead['id']}", json={"sales_stage": "Closed"}, headers=admin_headers)
    assert bad_stage.status_code == 422

    listed = client.get("/api/admin/leads", params={"search": "creek", "status": "warm"}, headers=admin_headers)
    assert [row["id"] for row in listed.json()["data"]] == [lead["id"]]

    assert client.delete(f"/api/admin/leads/{lead['id']}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/admin/leads/{lead['id']}", headers=admin_headers).status_code == 404


# ==================== MOVE TO LEADS ====================

def test_move_enquiry_to_lead(client, db, admin_headers, enquiry):
    response = client.post("/api/admin/move-to-leads", json={
        "sourceId": enquiry.id,
        "sourceType": "Enquiry",
        "leadData": {"projectName": "Creek Views", "salesStage": "Contacted", "price": 950000},
    }, headers=admin_headers)

    assert response.status_code == 201
    lead = response.json()["lead"]
    assert lead["name"] == "Jane Doe"
    assert lead["phone"] == "+971501234567"
    assert lead["email"] == "jane@example.ae"
    assert lead["project_name"] == "Creek Views"
    assert lead["sales_stage"] == "Contacted"
    assert lead["status"] == "HOT"
    assert lead["nationality"] == "Emirati"

    db.expire_all()
    assert db.get(Enquiry, enquiry.id) is None
    assert db.query(Lead).count() == 1


def test_move_to_leads_validation(client, db, admin_headers, enquiry):
    wrong_type = client.post("/api/admin/move-to-leads", json={
        "source_id": enquiry.id, "source_type": "client", "lead_data": {},
    }, headers=admin_headers)
    assert wrong_type.status_code == 400
    assert wrong_type.json()["detail"] == "Invalid source ID or type"

    no_data = client.post("/api/admin/move-to-leads", json={
        "source_id": enquiry.id, "source_type": "enquiry",
    }, headers=admin_headers)
    assert no_data.status_code == 400

    missing = client.post("/api/admin/move-to-leads", json={
        "source_id": 9999, "source_type": "enquiry", "lead_data": {},
    }, headers=admin_headers)
    assert missing.status_code == 404

    bad_phone = client.post("/api/admin/move-to-leads", json={
        "source_id": enquiry.id, "source_type": "enquiry", "lead_data": {"phone": "nope"},
    }, headers=admin_headers)
    assert bad_phone.status_code == 400
    assert bad_phone.json()["detail"] == "Please enter a valid phone number"

    db.expire_all()
    assert db.get(Enquiry, enquiry.id) is not None
    assert db.query(Lead).count() == 0


def test_move_to_leads_rolls_back_when_commit_fails(client, db, admin_headers, enquiry):
    def refuse_lead_insert(session, flush_context, instances):
        if any(isinstance(obj, Lead) for obj in session.new):
            raise SQLAlchemyError("disk full")

    event.listen(Session, "before_flush", refuse_lead_insert)
    try:
        response = client.post("/api/admin/move-to-leads", json={
            "source_id": enquiry.id, "source_type": "enquiry", "lead_data": {"name": "Jane Doe"},
        }, headers=admin_headers)
    finally:
        event.remove(Session, "before_flush", refuse_lead_insert)

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to move enquiry to leads: disk full"

    db.expire_all()
    assert db.get(Enquiry, enquiry.id) is not None
    assert db.query(Lead).count() == 0


def test_lead_list_accepts_page_size_spellings(client, db, admin_headers):
    db.add_all([Lead(name=f"Lead {i}", phone=f"050000000{i}") for i in range(3)])
    db.commit()

    camel = client.get("/api/admin/leads", params={"page": 2, "pageSize": 2}, headers=admin_headers).json()
    assert len(camel["data"]) == 1
    assert camel["pagination"] == {"page": 2, "limit": 2, "total": 3, "total_pages": 2}

    snake = client.get("/api/admin/leads", params={"page_size": 1}, headers=admin_headers).json()
    assert len(snake["data"]) == 1
    assert snake["pagination"]["limit"] == 1

    default = client.get("/api/admin/leads", headers=admin_headers).json()
    assert default["pagination"]["limit"] == 10


# ==================== DASHBOARD ====================

def test_stats(client, db, admin_headers, enquiry):
    db.add_all([
        Lead(name="A", phone="0501111111", status=LeadStatus.HOT),
        Lead(name="B", phone="0502222222", status=LeadStatus.WARM),
        Lead(name="C", phone="0503333333", status=LeadStatus.COLD),
    ])
    db.commit()

    response = client.get("/api/admin/stats", headers=admin_headers)
    assert response.status_code == 200
    assert response.headers["cache-control"] == "private, max-age=30"

    stats = response.json()["stats"]
    assert stats["total"] == 3
    assert stats["hot"] == 1
    assert stats["warm"] == 1
    assert stats["lost"] == 1
    assert stats["enquiries"] == 1
    assert stats["conversion_rate"] == 33.3
    assert stats["lost_rate"] == 33.3
    assert len(response.json()["recent_leads"]) == 3


def test_stats_empty(client, admin_headers):
    stats = client.get("/api/admin/stats", headers=admin_headers).json()["stats"]
    assert stats["total"] == 0
    assert stats["conversion_rate"] == 0


def test_sales_stages(client, admin_headers):
    body = client.get("/api/admin/sales-stages", headers=admin_headers).json()
    assert body["stages"][0] == "New Inquiry"
    assert len(body["stages"]) == len(SalesStage) == 19
    assert body["statuses"] == ["HOT", "WARM", "COLD"]


def test_cache_endpoints(client, admin_headers):
    stats = client.get("/api/admin/cache", headers=admin_headers).json()
    assert stats["alnair"] == {"size": 0, "keys": []}
    assert stats["listings"]["priority"]["cached"] is False

    cleared = client.delete("/api/admin/cache", headers=admin_headers)
    assert cleared.status_code == 200
    assert cleared.json()["success"] is True
