import uuid

import pytest
from sqlalchemy.exc import OperationalError

from casebook.core.errors import PersistenceError
from casebook.services import store


def test_create_and_get_case(client, make_case):
    case = make_case("INC-1", "J. Doe")
    assert case["status"] == "Open"
    assert case["scope"] == ""
    assert case["analyst_data"] == {"notes": "", "tasks": [], "iocs": [], "timeline": []}

    r = client.get(f"/cases/{case['id']}")
    assert r.status_code == 200
    assert r.json()["progress"] == {"completed": 0, "total": 0, "percent": 0}


def test_create_requires_labels(client):
    r = client.post("/cases", json={"case_id": " ", "analyst_name": "J. Doe"})
    assert r.status_code == 422


def test_missing_case_is_404(client):
    r = client.get(f"/cases/{uuid.uuid4()}")
    assert r.status_code == 404
    assert r.json()["detail"] == "Case not found"


def test_scope_steps_and_findings(client, make_case):
    case = make_case()
    base = f"/cases/{case['id']}"

    r = client.put(f"{base}/scope", json={"profiles": ["Memory Forensics"]})
    assert r.json()["case"]["included_phases"] == ["MEMORY"]

    r = client.put(f"{base}/findings/volatility_analysis", json={"text": "Clean"})
    assert r.status_code == 200

    body = client.get(f"{base}/steps").json()
    assert [p["phase"] for p in body["phases"]] == ["MEMORY"]
    assert body["phases"][0]["title"] == "Phase 2: Memory Analysis"
    assert body["phases"][0]["next_phase"] is None
    vol = next(s for s in body["phases"][0]["steps"] if s["id"] == "volatility_analysis")
    assert vol["state"] == "clean"
    assert body["progress"] == {"completed": 1, "total": 4, "percent": 25}

    r = client.put(f"{base}/findings/not_a_step", json={"text": "x"})
    assert r.status_code == 404
    assert "not_a_step" in r.json()["detail"]


def test_status_update(client, make_case):
    case = make_case()
    r = client.put(f"/cases/{case['id']}/status", json={"status": "Closed"})
    assert r.json()["case"]["status"] == "Closed"

    r = client.put(f"/cases/{case['id']}/status", json={"status": "Archived"})
    assert r.status_code == 422


def test_step_data_validation(client, make_case):
    base = f"/cases/{make_case()['id']}"

    r = client.put(f"{base}/step-data/ma_packers", json={"isPacked": "definitely"})
    assert r.status_code == 422

    r = client.put(f"{base}/step-data/ma_packers", json={"isPacked": True, "packerName": "UPX"})
    assert r.json()["case"]["step_data"]["ma_packers"] == {"isPacked": True, "packerName": "UPX"}

    r = client.put(f"{base}/step-data/ma_strings", json={"urls": ["http://evil.example"]})
    assert r.json()["case"]["step_data"]["ma_strings"] == {"urls": ["http://evil.example"]}

    r = client.put(f"{base}/step-data/bogus", json={})
    assert r.status_code == 404


def test_packer_and_files(client, make_case):
    base = f"/cases/{make_case()['id']}"

    r = client.put(f"{base}/packer", json={"is_packed": True, "packer_name": "Themida"})
    assert r.json()["case"]["findings"]["ma_packers"] == "Packed: Yes\nPacker Name: Themida"

    r = client.post(f"{base}/files", json={"file_name": "a.exe", "hash": "111"})
    entry = r.json()["case"]["step_data"]["ma_general"]["fileList"][0]

    r = client.put(f"{base}/files/{entry['id']}", json={"file_name": "a.exe", "hash": "222"})
    assert r.json()["case"]["step_data"]["ma_general"]["fileList"][0]["hash"] == "222"

    r = client.delete(f"{base}/files/{entry['id']}")
    assert r.json()["case"]["step_data"]["ma_general"]["fileList"] == []


def test_notebook_routes(client, make_case):
    base = f"/cases/{make_case()['id']}/notebook"

    client.put(f"{base}/notes", json={"text": "phish at 09:55"})
    data = client.post(f"{base}/tasks", json={"text": "Check logs"}).json()["analyst_data"]
    task_id = data["tasks"][0]["id"]
    data = client.post(f"{base}/tasks/{task_id}/toggle").json()["analyst_data"]
    assert data["tasks"][0]["completed"] is True

    data = client.post(f"{base}/iocs", json={"text": "evil.example"}).json()["analyst_data"]
    ioc_id = data["iocs"][0]["id"]
    r = client.put(f"{base}/iocs/{ioc_id}", json={"text": "evil.example", "color": "bg-orange-500"})
    data = r.json()["analyst_data"]
    assert data["iocs"][0]["color"] == "bg-orange-500"

    client.post(f"{base}/timeline", json={"date": "2024-01-02", "time": "09:00", "description": "b"})
    r = client.post(f"{base}/timeline", json={"date": "2024-01-01", "time": "10:00", "description": "a"})
    data = r.json()["analyst_data"]
    assert [e["description"] for e in data["timeline"]] == ["a", "b"]

    data = client.delete(f"{base}/timeline/{data['timeline'][0]['id']}").json()["analyst_data"]
    assert [e["description"] for e in data["timeline"]] == ["b"]

    data = client.get(base).json()["analyst_data"]
    assert data["notes"] == "phish at 09:55"
    assert len(data["iocs"]) == 1

    data = client.delete(f"{base}/tasks/{task_id}").json()["analyst_data"]
    assert data["tasks"] == []
    data = client.delete(f"{base}/iocs/{ioc_id}").json()["analyst_data"]
    assert data["iocs"] == []


def test_list_filters_and_sort(client, make_case):
    a = make_case("INC-1", "Ana")
    make_case("INC-2", "Bo")
    c = make_case("INC-3", "Ana")
    client.put(f"/cases/{c['id']}/status", json={"status": "Closed"})

    r = client.get("/cases", params={"status": "Open", "sort": "case_id", "direction": "asc"})
    assert [x["case_id"] for x in r.json()["cases"]] == ["INC-1", "INC-2"]

    params = [("analyst_name", "Ana"), ("analyst_name", "Cy"), ("sort", "case_id"), ("direction", "asc")]
    r = client.get("/cases", params=params)
    assert [x["case_id"] for x in r.json()["cases"]] == ["INC-1", "INC-3"]

    r = client.get("/cases", params={"status": "Archived"})
    assert r.json()["cases"] == []

    r = client.get("/cases", params={"sort": "score"})
    assert r.status_code == 422

    stats = client.get("/stats").json()
    assert stats["totals"]["cases"] == 3
    assert stats["by_status"] == {"Open": 2, "Closed": 1}
    assert {"value": "Ana", "count": 2} in stats["filters"]["analyst_name"]
    assert a["id"] in [x["id"] for x in stats["latest_cases"]]


def test_exports(client, make_case):
    base = f"/cases/{make_case()['id']}"
    client.post(f"{base}/notebook/tasks", json={"text": "Check logs"})

    r = client.get(f"{base}/export", params={"format": "csv"})
    assert r.status_code == 200
    assert r.headers["content-disposition"] == 'attachment; filename="CASE_INC-1_REPORT.csv"'
    assert "Task,Check logs,Pending" in r.text

    r = client.get(f"{base}/export", params={"format": "pdf"})
    assert r.headers["content-type"] == "application/pdf"
    assert r.content.startswith(b"%PDF")

    r = client.get(f"{base}/export", params={"format": "xlsx"})
    assert r.status_code == 422

    r = client.get(f"{base}/notebook/tasks/export", params={"format": "csv"})
    assert r.text == 'Status,Task\nPending,"Check logs"'


def test_ai_export(client, make_case, summarizer):
    base = f"/cases/{make_case()['id']}"

    r = client.get(f"{base}/export", params={"format": "txt", "source": "ai"})
    assert r.status_code == 200
    assert "CASE_INC-1_REPORT_AI.txt" in r.headers["content-disposition"]
    assert r.text == summarizer.text
    assert client.get(f"{base}/analysis").json()["report"]["threat_level"] == "High"

    summarizer.error = "quota exceeded"
    r = client.get(f"{base}/export", params={"format": "doc", "source": "ai"})
    assert r.status_code == 502
    assert r.json()["detail"] == "quota exceeded"


def test_persistence_failure_is_503(client, make_case, monkeypatch):
    case = make_case()

    def broken_commit(session, what):
        raise PersistenceError(f"Failed to {what}")

    monkeypatch.setattr(store, "_commit", broken_commit)
    r = client.put(f"/cases/{case['id']}/notebook/notes", json={"text": "x"})
    assert r.status_code == 503


def test_store_wraps_database_errors(session, monkeypatch):
    case = store.create_case(session, "INC-1", "J. Doe")

    def fail():
        raise OperationalError("UPDATE cases", {}, Exception("disk I/O error"))

    monkeypatch.setattr(session, "commit", fail)
    case.status = "Closed"
    with pytest.raises(PersistenceError, match="save case"):
        store.save_case(session, case)


def test_catalog_routes(client):
    profiles = {p["name"]: p["phases"] for p in client.get("/catalog/profiles").json()["profiles"]}
    assert profiles["Memory Forensics"] == ["MEMORY"]
    assert profiles["Full Forensics"] == profiles["Custom"]
    assert len(profiles["Full Forensics"]) == 5

    phases = client.get("/catalog/steps").json()["phases"]
    assert [p["title"] for p in phases][:2] == ["Phase 1: Deep OS & Artifacts", "Phase 2: Memory Analysis"]
    dynamic = next(p for p in phases if p["phase"] == "MALWARE_DYNAMIC")
    assert dynamic["steps"][0]["id"] == "ma_dynamic_checklist"
    assert dynamic["steps"][0]["is_read_only"] is True


def test_notebook_colors_come_from_palette(client, make_case):
    base = f"/cases/{make_case()['id']}/notebook"
    r = client.post(f"{base}/iocs", json={"text": "evil.example", "color": "hotpink"})
    assert r.status_code == 422

    event = {"date": "2024-01-01", "time": "10:00", "description": "x", "color": "bg-purple-500"}
    r = client.post(f"{base}/timeline", json=event)
    assert r.json()["analyst_data"]["timeline"][0]["color"] == "bg-purple-500"
