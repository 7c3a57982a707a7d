import uuid
from datetime import date

from research_office.external import ExternalLookupError, ExternalRecordNotFound
from .conftest import client, make_publication, make_scientist, receive_event


def _status(client, pub_id, status, changed_by, **extra):
    payload = {"status": status, "changed_by": changed_by, **extra}
    return client.patch(f"/api/publications/{pub_id}/status", json=payload)


def _history(client, pub_id):
    resp = client.get(f"/api/publications/{pub_id}/history")
    assert resp.status_code == 200
    return resp.json()


def test_create_defaults_to_concept(client):
    pub = make_publication(client)
    assert pub["status"] == "Concept"
    assert pub["vetted_for_submission_by_ip_office"] is False


def test_create_rejects_unknown_status(client):
    resp = client.post("/api/publications", json={"title": "x", "status": "Drafting"})
    assert resp.status_code == 400


def test_transition_must_follow_pipeline(client):
    editor = make_scientist(client)
    pub = make_publication(client, authors="A. Author")
    resp = _status(client, pub["id"], "Published", editor["id"])
    assert resp.status_code == 400
    assert resp.json()["detail"] == 'Invalid status transition from "Concept" to "Published"'
    assert _history(client, pub["id"]) == []


def test_complete_draft_requires_authorship(client):
    editor = make_scientist(client)
    pub = make_publication(client)
    resp = _status(client, pub["id"], "Complete Draft", editor["id"])
    assert resp.status_code == 400
    assert "Authorship" in resp.json()["detail"]
    assert client.get(f"/api/publications/{pub['id']}").json()["status"] == "Concept"

    resp = _status(
        client,
        pub["id"],
        "Complete Draft",
        editor["id"],
        updated_fields={"authors": "Rivera J, Chen L"},
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "Complete Draft"
    assert resp.json()["authors"] == "Rivera J, Chen L"


def test_vetting_requires_ip_office_flag_set_by_plain_edit(client):
    editor = make_scientist(client)
    pub = make_publication(client, authors="A. Author")
    assert _status(client, pub["id"], "Complete Draft", editor["id"]).status_code == 200

    resp = _status(client, pub["id"], "Vetted for submission", editor["id"])
    assert resp.status_code == 400
    assert "IP office approval" in resp.json()["detail"]

    resp = _status(
        client,
        pub["id"],
        "Vetted for submission",
        editor["id"],
        updated_fields={"vetted_for_submission_by_ip_office": True},
    )
    assert resp.status_code == 400

    resp = client.patch(
        f"/api/publications/{pub['id']}",
        json={"vetted_for_submission_by_ip_office": True, "changed_by": editor["id"]},
    )
    assert resp.status_code == 200
    assert resp.json()["vetted_for_submission_by_ip_office"] is True
    assert _status(client, pub["id"], "Vetted for submission", editor["id"]).status_code == 200


def test_full_pipeline_to_published(client):
    editor = make_scientist(client)
    pub = make_publication(client, authors="A. Author")
    client.patch(f"/api/publications/{pub['id']}", json={"vetted_for_submission_by_ip_office": True})
    for status in ("Complete Draft", "Vetted for submission"):
        assert _status(client, pub["id"], status, editor["id"]).status_code == 200

    resp = _status(
        client,
        pub["id"],
        "Submitted for review with pre-publication",
        editor["id"],
        updated_fields={"prepublication_url": "https://www.biorxiv.org/content/1"},
    )
    assert resp.status_code == 400
    resp = _status(
        client,
        pub["id"],
        "Submitted for review with pre-publication",
        editor["id"],
        updated_fields={"prepublication_url": "https://www.biorxiv.org/content/1", "prepublication_site": "bioRxiv"},
    )
    assert resp.status_code == 200, resp.text

    assert _status(client, pub["id"], "Under review", editor["id"]).status_code == 400
    assert _status(
        client, pub["id"], "Under review", editor["id"], updated_fields={"journal": "Cell Reports"}
    ).status_code == 200
    assert _status(client, pub["id"], "Accepted/In Press", editor["id"]).status_code == 200

    resp = _status(client, pub["id"], "Published", editor["id"], updated_fields={"doi": "10.1000/xyz"})
    assert resp.status_code == 400
    assert "Publication date and DOI" in resp.json()["detail"]
    resp = _status(
        client,
        pub["id"],
        "Published",
        editor["id"],
        updated_fields={"doi": "10.1000/xyz", "publication_date": "2024-02-10"},
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "Published"
    assert resp.json()["publication_date"] == "2024-02-10"

    assert _status(client, pub["id"], "Under review", editor["id"]).status_code == 400


def test_status_change_history_and_changes_are_recorded(client):
    editor = make_scientist(client)
    pub = make_publication(client, authors="A. Author")
    with client.websocket_connect("/ws/workflows/publication") as websocket:
        resp = _status(
            client,
            pub["id"],
            "Complete Draft",
            editor["id"],
            changes=[{"field": "authors", "old_value": None, "new_value": "A. Author"}],
        )
        event = receive_event(websocket)
    assert resp.status_code == 200
    history = _history(client, pub["id"])
    assert len(history) == 2
    status_rows = [h for h in history if h["to_status"] is not None]
    assert status_rows[0]["from_status"] == "Concept"
    assert status_rows[0]["to_status"] == "Complete Draft"
    assert status_rows[0]["changed_by"] == editor["id"]
    field_rows = [h for h in history if h["changed_field"] == "authors"]
    assert field_rows[0]["new_value"] == "A. Author"

    assert event["publication_id"] == pub["id"]
    assert event["status_from"] == "Concept"
    assert event["status_to"] == "Complete Draft"


def test_status_change_requires_known_editor(client):
    pub = make_publication(client, authors="A. Author")
    resp = _status(client, pub["id"], "Complete Draft", str(uuid.uuid4()))
    assert resp.status_code == 404
    assert _history(client, pub["id"]) == []


def test_history_is_newest_first(client):
    editor = make_scientist(client)
    pub = make_publication(client)
    client.patch(f"/api/publications/{pub['id']}", json={"journal": "Nature", "changed_by": editor["id"]})
    client.patch(f"/api/publications/{pub['id']}", json={"authors": "Okafor N"})
    _status(client, pub["id"], "Complete Draft", editor["id"])
    history = _history(client, pub["id"])
    assert [h["changed_field"] or h["to_status"] for h in history] == ["Complete Draft", "authors", "journal"]
    assert history[-1]["change_reason"] == "journal updated"
    assert history[-1]["old_value"] is None
    assert history[-1]["new_value"] == "Nature"


def test_plain_edit_skips_unchanged_fields(client):
    pub = make_publication(client, journal="Nature")
    client.patch(f"/api/publications/{pub['id']}", json={"journal": "Nature"})
    assert _history(client, pub["id"]) == []


def test_authors_are_added_and_merged(client):
    pub = make_publication(client)
    author = make_scientist(client)
    url = f"/api/publications/{pub['id']}/authors"

    resp = client.post(url, json={"scientist_id": author["id"], "authorship_type": "First Author", "author_position": 1})
    assert resp.status_code == 201
    assert resp.json()["authorship_type"] == "First Author"

    resp = client.post(url, json={"scientist_id": author["id"], "authorship_type": "Corresponding Author, First Author"})
    assert resp.status_code == 200
    assert resp.json()["authorship_type"] == "First Author, Corresponding Author"
    assert resp.json()["author_position"] == 1

    authors = client.get(url).json()
    assert len(authors) == 1
    assert authors[0]["scientist"]["id"] == author["id"]

    assert client.delete(f"{url}/{author['id']}").status_code == 204
    assert client.delete(f"{url}/{author['id']}").status_code == 404


def test_author_requires_existing_scientist(client):
    pub = make_publication(client)
    resp = client.post(
        f"/api/publications/{pub['id']}/authors",
        json={"scientist_id": str(uuid.uuid4()), "authorship_type": "Co-Author"},
    )
    assert resp.status_code == 404


def _crossref_record(doi):
    return {
        "title": "Gut microbiota and asthma",
        "authors": "Rivera J, Chen L",
        "journal": "Cell Reports",
        "volume": "12",
        "issue": "3",
        "pages": "100-110",
        "doi": doi,
        "pmid": None,
        "publication_date": date(2023, 5, 1),
        "publication_type": "journal-article",
    }


def test_import_by_doi_creates_published_record(client, monkeypatch):
    doi = f"10.1234/{uuid.uuid4().hex[:8]}"
    monkeypatch.setattr(
        "research_office.routes.publications.fetch_crossref_work",
        lambda value: _crossref_record(value),
    )
    resp = client.post("/api/publications/import", json={"doi": doi})
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["status"] == "Published"
    assert body["doi"] == doi
    assert body["journal"] == "Cell Reports"

    resp = client.post("/api/publications/import", json={"doi": doi.upper()})
    assert resp.status_code == 409


def test_import_by_pmid(client, monkeypatch):
    pmid = str(uuid.uuid4().int)[:8]

    def fake_fetch(value):
        record = _crossref_record(None)
        record["pmid"] = value
        return record

    monkeypatch.setattr("research_office.routes.publications.fetch_pubmed_article", fake_fetch)
    resp = client.post("/api/publications/import", json={"pmid": pmid})
    assert resp.status_code == 201
    assert resp.json()["pmid"] == pmid


def test_import_requires_exactly_one_identifier(client):
    assert client.post("/api/publications/import", json={}).status_code == 400
    assert client.post("/api/publications/import", json={"doi": "10.1/x", "pmid": "1"}).status_code == 400


def test_import_upstream_errors(client, monkeypatch):
    def missing(value):
        raise ExternalRecordNotFound("No record")

    def unreachable(value):
        raise ExternalLookupError("down")

    monkeypatch.setattr("research_office.routes.publications.fetch_crossref_work", missing)
    assert client.post("/api/publications/import", json={"doi": "10.9/missing"}).status_code == 404
    monkeypatch.setattr("research_office.routes.publications.fetch_crossref_work", unreachable)
    resp = client.post("/api/publications/import", json={"doi": "10.9/down"})
    assert resp.status_code == 502
    assert "CrossRef" in resp.json()["detail"]


def test_list_and_delete(client):
    pub = make_publication(client, status="Under review", journal="eLife")
    rows = client.get("/api/publications", params={"status": "Under review"}).json()
    assert pub["id"] in [row["id"] for row in rows]
    assert client.delete(f"/api/publications/{pub['id']}").status_code == 204
    assert client.get(f"/api/publications/{pub['id']}").status_code == 404


def _vetted_publication(client, editor):
    pub = make_publication(client, authors="A. Author")
    client.patch(f"/api/publications/{pub['id']}", json={"vetted_for_submission_by_ip_office": True})
    assert _status(client, pub["id"], "Complete Draft", editor["id"]).status_code == 200
    assert _status(client, pub["id"], "Vetted for submission", editor["id"]).status_code == 200
    client.patch(f"/api/publications/{pub['id']}", json={"vetted_for_submission_by_ip_office": False})
    return pub


def test_prepublication_submission_is_gated_not_blocked_by_the_map(client):
    editor = make_scientist(client)
    pub = _vetted_publication(client, editor)
    history_before = len(_history(client, pub["id"]))

    resp = _status(client, pub["id"], "Submitted for review with pre-publication", editor["id"])
    assert resp.status_code == 400
    assert "Prepublication URL and site" in resp.json()["detail"]
    assert client.get(f"/api/publications/{pub['id']}").json()["status"] == "Vetted for submission"
    assert len(_history(client, pub["id"])) == history_before


def test_skipping_a_step_is_rejected_whatever_the_fields(client):
    editor = make_scientist(client)
    pub = make_publication(client, authors="A. Author")
    assert _status(client, pub["id"], "Complete Draft", editor["id"]).status_code == 200
    resp = _status(
        client,
        pub["id"],
        "Submitted for review with pre-publication",
        editor["id"],
        updated_fields={"prepublication_url": "https://arxiv.org/abs/1", "prepublication_site": "arXiv"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Invalid status transition")
    assert client.get(f"/api/publications/{pub['id']}").json()["prepublication_url"] is None


def test_blank_journal_does_not_satisfy_review_gate(client):
    editor = make_scientist(client)
    pub = _vetted_publication(client, editor)
    resp = _status(client, pub["id"], "Submitted for review without pre-publication", editor["id"])
    assert resp.status_code == 200
    resp = _status(client, pub["id"], "Under review", editor["id"], updated_fields={"journal": " "})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Journal name is required for this status"


def test_null_title_is_rejected_without_history(client):
    pub = make_publication(client)
    resp = client.patch(f"/api/publications/{pub['id']}", json={"title": None})
    assert resp.status_code == 400
    assert "title cannot be null" in resp.json()["detail"]
    assert client.get(f"/api/publications/{pub['id']}").json()["title"] == pub["title"]
    assert _history(client, pub["id"]) == []


def test_null_journal_clears_the_field(client):
    pub = make_publication(client, journal="Cell")
    resp = client.patch(f"/api/publications/{pub['id']}", json={"journal": None})
    assert resp.status_code == 200
    assert resp.json()["journal"] is None
