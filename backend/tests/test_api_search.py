def result_ids(response):
    return [item["id"] for item in response.json()["items"]]


def test_results_wait_for_catalog_and_return_everything(client):
    response = client.get("/api/search/results")

    assert response.status_code == 200
    payload = response.json()
    assert payload["total"] == 5
    assert payload["has_more"] is False
    assert result_ids(response) == ["CSE101", "CSE205", "MTH110", "LIB001", "LIB002"]


def test_replace_options_then_read_results(client):
    client.get("/api/search/results")

    token = client.put("/api/search/options", json={"days": ["화"]}).json()["token"]
    response = client.get("/api/search/results")

    assert response.json()["token"] == token
    assert result_ids(response) == ["CSE101"]


def test_times_alias_and_credit_selector(client):
    client.put("/api/search/options", json={"times": [5], "credits": ""})

    assert result_ids(client.get("/api/search/results")) == ["CSE205"]


def test_patch_changes_one_field(client):
    client.patch("/api/search/options", json={"field": "grades", "value": [1]})
    client.patch("/api/search/options", json={"field": "query", "value": "data"})

    options = client.get("/api/search/options").json()
    assert options["grades"] == [1]
    assert options["query"] == "data"
    assert result_ids(client.get("/api/search/results")) == ["LIB001"]


def test_patch_rejects_unknown_field_and_bad_value(client):
    assert client.patch("/api/search/options", json={"field": "colour", "value": 1}).status_code == 422

    response = client.patch("/api/search/options", json={"field": "grades", "value": "many"})
    assert response.status_code == 422
    assert response.json()["details"]["errors"]


def test_open_search_from_a_cell(client):
    response = client.post("/api/search/open", json={"tableId": "schedule-1", "day": "월", "period": 2})

    assert response.status_code == 200
    assert response.json() == {"tableId": "schedule-1", "day": "월", "period": 2}
    assert client.get("/api/search/context").json()["tableId"] == "schedule-1"
    assert result_ids(client.get("/api/search/results")) == ["CSE101"]

    client.post("/api/search/close")
    assert client.get("/api/search/context").json() is None


def test_open_search_for_unknown_table(client):
    response = client.post("/api/search/open", json={"tableId": "nope"})

    assert response.status_code == 404


def test_adding_a_course_closes_the_search(client):
    client.post("/api/search/open", json={"tableId": "schedule-1"})
    client.get("/api/search/results")

    client.post("/api/tables/schedule-1/sessions", json={"courseId": "CSE205"})

    assert client.get("/api/search/context").json() is None


def test_pagination_with_small_pages(client):
    client.app.state.search.window.page_size = 2

    first = client.get("/api/search/results").json()
    second = client.post("/api/search/results/more").json()
    third = client.post("/api/search/results/more").json()
    fourth = client.post("/api/search/results/more").json()

    assert [page["shown"] for page in (first, second, third, fourth)] == [2, 4, 5, 5]
    assert fourth["has_more"] is False


def test_scroll_near_end_loads_next_page(client):
    client.app.state.search.window.page_size = 2
    client.get("/api/search/results")

    far = client.post("/api/search/results/scroll", json={"scrollTop": 0, "clientHeight": 100, "scrollHeight": 1000})
    near = client.post("/api/search/results/scroll", json={"scrollTop": 880, "clientHeight": 100, "scrollHeight": 1000, "threshold": 50})

    assert far.json()["shown"] == 2
    assert near.json()["shown"] == 4


def test_virtual_window(client):
    response = client.get("/api/search/window", params={"scroll_offset": 0, "viewport_height": 130})

    assert response.status_code == 200
    assert response.json() == {"start": 0, "end": 5, "offset": 0.0, "total_height": 325.0}


def test_majors_and_time_slots(client):
    majors = client.get("/api/search/majors").json()
    assert majors == [
        {"value": "컴퓨터공학과", "label": "컴퓨터공학과"},
        {"value": "수학과", "label": "수학과"},
        {"value": "교양<p>기초", "label": "교양 기초"},
    ]

    slots = client.get("/api/search/time-slots").json()
    assert len(slots) == 24
    assert slots[0] == {"id": 1, "label": "09:00~09:30"}
    assert slots[-1] == {"id": 24, "label": "22:35~23:25"}
