API = "/api/v1"


def create_post(client, post_type="cases") -> int:
    response = client.post(f"{API}/posts", json={"type": post_type})
    assert response.status_code == 201
    return response.json()["id"]


def test_health(client):
    assert client.get("/").json()["status"] == "ok"


def test_create_save_and_fetch_post(client):
    post_id = create_post(client)

    body = {
        "type": "cases",
        "title": "Bridge repair",
        "cardDescription": "Summary",
        "category": "Steel",
        "sections": [
            {"id": "s1", "type": "video", "order": 0, "data": {"url": "https://v.example.com/a.mp4"}},
        ],
    }
    saved = client.put(f"{API}/posts/{post_id}", params={"language": "en"}, json=body)
    assert saved.status_code == 200
    assert saved.json() == {"id": post_id, "unknownCategories": ["Steel"]}

    fetched = client.get(f"{API}/posts/{post_id}", params={"language": "en"}).json()
    assert fetched["title"] == "Bridge repair"
    assert fetched["cardDescription"] == "Summary"
    assert fetched["sections"][0]["data"]["autoplay"] is False

    ja = client.get(f"{API}/posts/{post_id}", params={"language": "ja"}).json()
    assert ja["title"] == ""


def test_save_rejects_bad_section_payload(client):
    post_id = create_post(client)
    body = {"type": "cases", "sections": [{"id": "s1", "type": "gallery", "order": 0, "data": {"rows": 3}}]}

    assert client.put(f"{API}/posts/{post_id}", json=body).status_code == 422


def test_missing_post_is_404(client):
    assert client.get(f"{API}/posts/999").status_code == 404
    assert client.put(f"{API}/posts/999", json={"type": "cases"}).status_code == 404
    assert client.delete(f"{API}/posts/999").status_code == 404


def test_list_and_delete(client):
    first = create_post(client, "news")
    second = create_post(client, "news")
    create_post(client, "cases")

    listed = client.get(f"{API}/posts", params={"type": "news"}).json()
    assert {p["id"] for p in listed} == {first, second}

    assert client.delete(f"{API}/posts/{first}", params={"type": "news"}).status_code == 204
    listed = client.get(f"{API}/posts", params={"type": "news"}).json()
    assert [p["id"] for p in listed] == [second]


def test_reorder_round_trip(client):
    ids = [create_post(client, "equipments") for _ in range(3)]
    wanted = [ids[2], ids[0], ids[1]]

    response = client.put(f"{API}/posts/order/equipments", json={"ids": wanted})
    assert response.status_code == 200
    assert response.json() == {"type": "equipments", "ids": wanted}

    assert client.get(f"{API}/posts/order/equipments").json()["ids"] == wanted


def test_unknown_post_type_is_rejected(client):
    assert client.get(f"{API}/posts/order/blog").status_code == 422
    assert client.post(f"{API}/posts", json={"type": "blog"}).status_code == 422


def test_used_categories(client):
    post_id = create_post(client)
    client.put(f"{API}/posts/{post_id}", json={"type": "cases", "category": "Steel, Civil"})

    used = client.get(f"{API}/posts/categories-used/cases").json()
    assert sorted(used) == ["Civil", "Steel"]


def test_category_crud(client):
    created = client.post(f"{API}/categories", json={"category_name": "Steel", "type": "cases"})
    assert created.status_code == 201
    category_id = created.json()["id"]

    duplicate = client.post(f"{API}/categories", json={"category_name": "Steel", "type": "cases"})
    assert duplicate.status_code == 409

    patched = client.patch(f"{API}/categories/{category_id}", json={"category_name": "Stainless"})
    assert patched.json()["category_name"] == "Stainless"

    assert [c["category_name"] for c in client.get(f"{API}/categories", params={"type": "cases"}).json()] == [
        "Stainless"
    ]

    assert client.delete(f"{API}/categories/{category_id}").status_code == 204
    assert client.delete(f"{API}/categories/{category_id}").status_code == 404


def test_upload_and_delete(client, storage):
    response = client.post(
        f"{API}/uploads",
        files={"file": ("photo.png", b"png-bytes", "image/png")},
        data={"type": "image", "path": "cases"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["key"].startswith("cases/images/")
    assert body["key"].endswith("_photo.png")
    assert body["url"] == storage.base_url + body["key"]

    deleted = client.request("DELETE", f"{API}/uploads", json={"url": body["url"]})
    assert deleted.status_code == 200
    assert storage.deleted == [body["key"]]


def test_upload_with_wrong_kind(client):
    response = client.post(
        f"{API}/uploads",
        files={"file": ("clip.mp4", b"mp4", "video/mp4")},
        data={"type": "image"},
    )
    assert response.status_code == 400
