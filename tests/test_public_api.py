from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from app.core.config import settings
from app.models import Developer, Enquiry, Project
from app.services.project_service import ProjectService


BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def catalogue(db, developer):
    other = Developer(name="Sobha Realty", project_count=1)
    db.add(other)
    db.flush()

    projects = [
        Project(
            title="Creek Views",
            city="Dubai",
            category="Off_plan",
            type=["Apartment"],
            unit_types=["One", "Two"],
            min_price=900000,
            developer_id=developer.id,
            created_at=BASE_TIME,
        ),
        Project(
            title="Palm Villas",
            city="Dubai",
            category="Ready",
            type=["Villa"],
            unit_types=["Four"],
            min_price=5000000,
            developer_id=other.id,
            created_at=BASE_TIME + timedelta(days=1),
        ),
        Project(
            title="Hidden Draft",
            city="Dubai",
            category="Ready",
            type=["Villa"],
            status="draft",
            developer_id=other.id,
            created_at=BASE_TIME + timedelta(days=2),
        ),
    ]
    db.add_all(projects)
    developer.project_count = 1
    db.commit()
    return {"emaar": developer, "sobha": other, "projects": projects}


def titles(response):
    return [p["title"] for p in response.json()["data"]]


def test_list_projects_active_only_newest_first(client, catalogue):
    response = client.get("/api/projects")
    assert response.status_code == 200
    assert titles(response) == ["Palm Villas", "Creek Views"]
    assert response.json()["pagination"] == {"page": 1, "limit": 12, "total": 2, "total_pages": 1}

    project = response.json()["data"][1]
    assert project["Company"]["name"] == "Emaar Properties"
    assert project["type"] == ["Apartment"]


def test_list_projects_filters(client, catalogue):
    assert titles(client.get("/api/projects", params={"type": "Villa"})) == ["Palm Villas"]
    assert titles(client.get("/api/projects", params={"unit_types": ["Two", "Six"]})) == ["Creek Views"]
    assert titles(client.get("/api/projects", params={"max_price": 1_000_000})) == ["Creek Views"]
    assert titles(client.get("/api/projects", params={"search": "palm"})) == ["Palm Villas"]
    assert titles(client.get("/api/projects", params={"developer_id": "not-a-uuid"})) == []


def test_priority_developers_sort_first(client, catalogue):
    emaar_id = str(catalogue["emaar"].id)
    response = client.get("/api/projects", params={"priority_company_ids": emaar_id})
    assert titles(response) == ["Creek Views", "Palm Villas"]

    response = client.post("/api/projects", json={"priority_company_ids": [emaar_id], "category": "Off_plan"})
    assert titles(response) == ["Creek Views"]


def test_limit_is_capped(client, catalogue):
    response = client.get("/api/projects", params={"limit": 1000, "page": 0})
    assert response.json()["pagination"]["limit"] == 100
    assert response.json()["pagination"]["page"] == 1


def test_project_detail(client, catalogue):
    creek = catalogue["projects"][0]
    response = client.get(f"/api/projects/{creek.id}")
    assert response.status_code == 200
    assert response.json()["data"]["Company"]["logo"] == "https://cdn.example.com/emaar.png"
    assert "website" in response.json()["data"]["Company"]

    draft = catalogue["projects"][2]
    assert client.get(f"/api/projects/{draft.id}").status_code == 404
    assert client.get("/api/projects/not-a-uuid").status_code == 404


def test_project_detail_falls_back_to_cache(client, catalogue):
    assert client.get("/api/projects/latest").status_code == 200
    creek = catalogue["projects"][0]

    with patch.object(ProjectService, "get_public", side_effect=OperationalError("SELECT", {}, Exception("gone"))):
        response = client.get(f"/api/projects/{creek.id}")
        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Creek Views"

        missing = client.get("/api/projects/00000000-0000-0000-0000-000000000000")
        assert missing.status_code == 500


def test_featured_uses_priority_cache(client, db, catalogue, monkeypatch):
    monkeypatch.setattr(settings, "PRIORITY_DEVELOPER_IDS", [str(catalogue["emaar"].id)])

    first = client.get("/api/projects/featured").json()
    assert [p["title"] for p in first["data"]] == ["Creek Views", "Palm Villas"]

    db.add(Project(title="Newest", created_at=BASE_TIME + timedelta(days=5)))
    db.commit()

    cached = client.get("/api/projects/featured").json()
    assert cached["total"] == 2

    refreshed = client.get("/api/projects/featured", params={"force_refresh": True}).json()
    assert [p["title"] for p in refreshed["data"]] == ["Creek Views", "Newest", "Palm Villas"]


def test_latest_reads_database_every_time(client, db, catalogue):
    assert client.get("/api/projects/latest").json()["total"] == 2
    db.add(Project(title="Newest", created_at=BASE_TIME + timedelta(days=5)))
    db.commit()
    assert [p["title"] for p in client.get("/api/projects/latest").json()["data"]][0] == "Newest"


def test_latest_filters_in_memory(client, catalogue):
    villas = client.get("/api/projects/latest", params={"type": "villa"}).json()
    assert [p["title"] for p in villas["data"]] == ["Palm Villas"]

    two_bed = client.get("/api/projects/latest", params={"bedrooms": "two", "max_price": 1000000}).json()
    assert [p["title"] for p in two_bed["data"]] == ["Creek Views"]

    newest = client.get("/api/projects/latest", params={"limit": 1}).json()
    assert newest["total"] == 1
    assert newest["data"][0]["title"] == "Palm Villas"


def test_project_detail_repairs_description(client, db, developer):
    project = Project(title="Harbour Point", description="The harbourΓÇÖs caf├⌐ row", developer_id=developer.id)
    db.add(project)
    db.commit()

    response = client.get(f"/api/projects/{project.id}")
    assert response.status_code == 200
    assert response.json()["data"]["description"] == "The harbour's café row"


def test_developer_directory(client, catalogue):
    response = client.get("/api/developers")
    assert response.status_code == 200
    names = [d["Company"]["name"] for d in response.json()["data"]]
    assert names == ["Emaar Properties", "Sobha Realty"]

    searched = client.get("/api/developers", params={"search": "sobha"}).json()
    assert [d["Company"]["name"] for d in searched["data"]] == ["Sobha Realty"]


def test_developers_all_cached(client, db, catalogue):
    db.add(Developer(name="No Projects Yet", project_count=0))
    db.commit()

    body = client.get("/api/developers/all").json()
    assert body["total"] == 2
    assert {d["Company"]["name"] for d in body["data"]} == {"Emaar Properties", "Sobha Realty"}


def test_submit_property_enquiry(client, db):
    response = client.post("/api/enquiry", json={
        "name": "Jane van Dyke",
        "phone": "+971 50 123 4567",
        "email": "jane@example.ae",
        "project_name": "Creek Views",
        "type": "Apartment",
        "price": "1.2M",
    })
    assert response.status_code == 201
    enquiry_id = response.json()["enquiry_id"]

    enquiry = db.get(Enquiry, enquiry_id)
    assert enquiry.first_name == "Jane"
    assert enquiry.last_name == "van Dyke"
    assert enquiry.subject == "Property Enquiry"
    assert enquiry.message == "Property: Creek Views, Type: Apartment, Budget: 1.2M"
    assert enquiry.status.value == "HOT"
    assert enquiry.property_interests == "Creek Views"


def test_submit_contact_form(client, db):
    response = client.post("/api/enquiry", json={
        "name": "Omar",
        "email": "omar@example.ae",
        "subject": "Viewing",
        "message": "Can I visit on Friday?",
    })
    assert response.status_code == 201
    enquiry = db.get(Enquiry, response.json()["enquiry_id"])
    assert enquiry.subject == "Viewing"
    assert enquiry.last_name is None


@pytest.mark.parametrize("payload,detail", [
    ({"phone": "+971501234567"}, "Please fill in: Name"),
    ({"name": "Jane", "phone": "abc"}, "Please enter a valid phone number"),
    ({"name": "Jane", "email": "jane@"}, "Please enter a valid email address"),
])
def test_submit_enquiry_validation(client, payload, detail):
    response = client.post("/api/enquiry", json=payload)
    assert response.status_code == 400
    assert response.json()["detail"] == detail


def test_migrations_init_reports_tables(client):
    response = client.post("/api/migrations/init")
    assert response.status_code == 200
    assert response.json()["tables"] == ["users", "developers", "projects", "general_enquiries", "leads"]
    assert client.get("/api/migrations/init").status_code == 200
