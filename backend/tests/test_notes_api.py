import uuid


async def test_notes_are_private(client, make_user, auth_headers):
    author = await make_user()
    other = await make_user()

    created = await client.post(
        "/api/notes",
        json={"content": "Flyer für das Sommerfest drucken"},
        headers=auth_headers(author),
    )
    assert created.status_code == 201
    note = created.json()["data"]
    assert note["user_id"] == str(author.id)

    own = await client.get("/api/notes", headers=auth_headers(author))
    assert [n["id"] for n in own.json()["data"]] == [note["id"]]
    assert own.json()["meta"]["total_count"] == 1

    foreign = await client.get("/api/notes", headers=auth_headers(other))
    assert foreign.json()["data"] == []

    hidden = await client.get(f"/api/notes/{note['id']}", headers=auth_headers(other))
    assert hidden.status_code == 404

    edit = await client.put(
        f"/api/notes/{note['id']}", json={"content": "Übernommen"}, headers=auth_headers(other)
    )
    assert edit.status_code == 404


async def test_author_edits_and_deletes(client, make_user, auth_headers):
    author = await make_user()
    note_id = (
        await client.post(
            "/api/notes", json={"content": "Raum anfragen"}, headers=auth_headers(author)
        )
    ).json()["data"]["id"]

    edited = await client.put(
        f"/api/notes/{note_id}", json={"content": "Raum ist gebucht"}, headers=auth_headers(author)
    )
    assert edited.json()["data"]["content"] == "Raum ist gebucht"

    deleted = await client.delete(f"/api/notes/{note_id}", headers=auth_headers(author))
    assert deleted.status_code == 200
    assert (
        await client.get(f"/api/notes/{note_id}", headers=auth_headers(author))
    ).status_code == 404


async def test_notes_need_login_and_content(client, make_user, auth_headers):
    anonymous = await client.post("/api/notes", json={"content": "Hallo"})
    assert anonymous.status_code in (401, 403)

    empty = await client.post(
        "/api/notes", json={"content": ""}, headers=auth_headers(await make_user())
    )
    assert empty.status_code == 422

    missing = await client.get(
        f"/api/notes/{uuid.uuid4()}", headers=auth_headers(await make_user())
    )
    assert missing.status_code == 404
