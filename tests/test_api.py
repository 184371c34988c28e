from campaign_core.data import CAMPAIGN_TITLE, DEFAULT_LABELS


def _upload(client, text, filename="campaign.csv"):
    return client.post("/upload", files={"file": (filename, text.encode("utf-8"), "text/csv")})


def test_dataset_defaults(client):
    resp = client.get("/dataset")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "default"
    assert body["rows"] == 5
    assert body["dataset"]["labels"] == list(DEFAULT_LABELS)
    assert body["dataset"]["achieved"][0] == 11677377


def test_upload_replaces_dataset(client, scenario_a_text):
    resp = _upload(client, scenario_a_text, filename="a.csv")
    assert resp.status_code == 200
    assert resp.json()["status"] == "loaded"
    assert resp.json()["rows"] == 2

    body = client.get("/dataset").json()
    assert body["source"] == "a.csv"
    assert body["dataset"] == {
        "labels": ["DeptA", "DeptB"],
        "target": [100.0, 200.0],
        "achieved": [50.0, 150.0],
        "remaining": [50.0, 50.0],
    }


def test_rejected_upload_keeps_previous(client):
    resp = _upload(client, "title\nheader\nBadRow;only;two")
    assert resp.status_code == 422
    body = resp.json()
    assert body["status"] == "rejected"
    assert body["issues"][0]["reason"] == "too_few_fields"
    assert client.get("/dataset").json()["rows"] == 5


def test_upload_requires_file(client):
    assert client.post("/upload").status_code == 422


def test_overview(client):
    resp = client.post("/overview", json={"numerals": "latn"})
    assert resp.status_code == 200
    summary = resp.json()["summary"]
    assert summary["achievement_pct"] == 77.8
    assert [c["display"] for c in summary["cards"]] == ["15,000,000", "11,677,377", "3,322,623", "77.8%"]
    assert set(resp.json()["charts"]) == {"comparison", "radar"}


def test_overview_rejects_unknown_numerals(client):
    assert client.post("/overview", json={"numerals": "roman"}).status_code == 422


def test_achievement_after_upload(client, scenario_a_text):
    _upload(client, scenario_a_text)
    body = client.post("/achievement", json={}).json()
    assert body["series"]["values"] == [50.0, 75.0]


def test_zero_target_encodes_as_null(client):
    _upload(client, "t\nh\nA;0;5;0\nB;10;5;5")
    body = client.post("/achievement", json={}).json()
    assert body["series"]["values"] == [None, 50.0]
    assert body["rows"][0]["achievement_pct"] is None


def test_distribution_selection(client):
    body = client.post("/distribution", json={"selected_departments": [DEFAULT_LABELS[0]]}).json()
    assert [s["department"] for s in body["shares"]] == [DEFAULT_LABELS[0]]
    assert body["shares"][0]["target_share"] == 1.0


def test_debug(client):
    _upload(client, "t\nh\nA;10;4;6\nB;x;1;0")
    body = client.post("/debug", json={}).json()
    assert body["row_counts"]["skipped_rows"] == 1
    assert body["skipped_rows"][0]["field"] == "target"


def test_reset(client, scenario_a_text):
    _upload(client, scenario_a_text)
    body = client.post("/reset").json()
    assert body["status"] == "default"
    assert body["rows"] == 5
    assert body["revision"] == 2


def test_export_round_trip(client, scenario_a_text):
    _upload(client, scenario_a_text)
    resp = client.get("/export")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    text = resp.text
    assert text.splitlines()[0] == CAMPAIGN_TITLE

    client.post("/reset")
    _upload(client, text)
    assert client.get("/dataset").json()["dataset"]["labels"] == ["DeptA", "DeptB"]


def test_lenient_upload_reports_nan_as_null(lenient_client):
    _upload(lenient_client, "t\nh\nA;abc;4;6")
    body = lenient_client.get("/dataset").json()
    assert body["dataset"]["target"] == [None]
    assert body["dataset"]["achieved"] == [4.0]
