import uuid

from fastapi.testclient import TestClient

from .helpers import register_and_login, task_payload


class TestE2E:
    def test_complete_user_journey(self, client: TestClient):
        # 1. Registration
        email = f"user_{uuid.uuid4().hex[:8]}@example.com"
        password = "SecurePass123!"

        r = client.post("/auth/register", json={"name": "Ada", "password": password})
        assert r.status_code == 422

        r = client.post("/auth/register", json={"name": "Ada", "email": email, "password": password})
        assert r.status_code == 200
        assert r.json()["email"] == email

        r = client.post("/auth/register", json={"name": "Ada", "email": email, "password": "OtherPass123!"})
        assert r.status_code == 400
        assert "exists" in r.json()["detail"].lower()

        # 2. Login and tokens
        r = client.post("/auth/login", json={"email": email, "password": "WrongPass123!"})
        assert r.status_code == 401

        r = client.post("/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200
        token = r.json()["token"]
        headers = {"Authorization": f"Bearer {token}"}

        # 3. Task operations
        r = client.post("/tasks", json=task_payload())
        assert r.status_code == 401

        r = client.post("/tasks?token=invalid", json=task_payload())
        assert r.status_code == 401

        r = client.post("/tasks", json=task_payload(), headers=headers)
        assert r.status_code == 201
        task = r.json()
        assert task["name"] == "Write report"
        assert task["completed"] is False
        assert task["priority"] == "high"
        task_id = task["id"]

        # query-param token still accepted
        r = client.get(f"/tasks?token={token}")
        assert r.status_code == 200
        tasks = r.json()
        assert len(tasks) == 1
        assert tasks[0]["id"] == task_id

        r = client.patch(f"/tasks/{task_id}/status", json={"completed": True}, headers=headers)
        assert r.status_code == 200
        assert r.json()["completed"] is True

        # 4. Isolation between users
        _, other_headers = register_and_login(client, name="Eve")

        r = client.get("/tasks", headers=other_headers)
        assert r.status_code == 200
        assert r.json() == []

        r = client.get(f"/tasks/{task_id}", headers=other_headers)
        assert r.status_code == 404
        r = client.put(f"/tasks/{task_id}", json=task_payload(name="Hijacked"), headers=other_headers)
        assert r.status_code == 404
        r = client.patch(f"/tasks/{task_id}/status", json={"completed": False}, headers=other_headers)
        assert r.status_code == 404
        r = client.delete(f"/tasks/{task_id}", headers=other_headers)
        assert r.status_code == 404

        # the owner's task is untouched
        r = client.get(f"/tasks/{task_id}", headers=headers)
        assert r.json()["name"] == "Write report"
        assert r.json()["completed"] is True

        # 5. Cleanup
        r = client.delete(f"/tasks/{task_id}", headers=headers)
        assert r.status_code == 204

        r = client.get("/tasks", headers=headers)
        assert r.status_code == 200
        assert r.json() == []

        r = client.delete(f"/tasks/{task_id}", headers=headers)
        assert r.status_code == 404

    def test_input_validation_and_limits(self, client: TestClient, user):
        _, headers = user

        r = client.post("/tasks", json={}, headers=headers)
        assert r.status_code == 422

        r = client.post("/tasks", json=task_payload(name=""), headers=headers)
        assert r.status_code == 422

        r = client.post("/tasks", json=task_payload(duration=0.4), headers=headers)
        assert r.status_code == 422
        r = client.post("/tasks", json=task_payload(duration=24.1), headers=headers)
        assert r.status_code == 422
        r = client.post("/tasks", json=task_payload(duration=24), headers=headers)
        assert r.status_code == 201

        payload = task_payload()
        del payload["deadline"]
        r = client.post("/tasks", json=payload, headers=headers)
        assert r.status_code == 422

        r = client.post("/tasks", json=task_payload(priority="urgent"), headers=headers)
        assert r.status_code == 422

        payload = task_payload()
        del payload["priority"]
        r = client.post("/tasks", json=payload, headers=headers)
        assert r.status_code == 201
        assert r.json()["priority"] == "medium"

    def test_update_replaces_all_fields(self, client: TestClient, user):
        _, headers = user
        created = client.post(
            "/tasks",
            json=task_payload(reminder_date="2030-01-14T09:00:00", dependencies=["abc"]),
            headers=headers,
        ).json()

        r = client.put(
            f"/tasks/{created['id']}",
            json={"name": "Rewritten", "deadline": "2030-02-01T08:00:00", "duration": 1.5},
            headers=headers,
        )
        assert r.status_code == 200
        updated = r.json()
        assert updated["id"] == created["id"]
        assert updated["owner_id"] == created["owner_id"]
        assert updated["created_at"] == created["created_at"]
        assert updated["name"] == "Rewritten"
        assert updated["priority"] == "medium"
        assert updated["description"] is None
        assert updated["category"] is None
        assert updated["tags"] == []
        assert updated["dependencies"] == []
        assert updated["reminder_date"] is None

    def test_round_trip_preserves_fields(self, client: TestClient, user):
        _, headers = user
        payload = task_payload(
            reminder_date="2030-01-14T09:00:00",
            dependencies=["dep-1", "dep-2"],
            tags=["b", "a", "b"],
        )
        created = client.post("/tasks", json=payload, headers=headers).json()

        listed = client.get("/tasks", headers=headers).json()
        assert listed == [created]
        assert created["deadline"] == "2030-01-15T12:00:00"
        assert created["reminder_date"] == "2030-01-14T09:00:00"
        assert created["dependencies"] == ["dep-1", "dep-2"]
        assert created["tags"] == ["b", "a"]
        assert created["duration"] == 2

    def test_lookup_by_ids_and_dependencies(self, client: TestClient, user):
        _, headers = user
        _, other_headers = register_and_login(client, name="Eve")

        mine = client.post("/tasks", json=task_payload(name="Mine"), headers=headers).json()
        theirs = client.post("/tasks", json=task_payload(name="Theirs"), headers=other_headers).json()
        blocked = client.post(
            "/tasks",
            json=task_payload(name="Blocked", dependencies=[mine["id"], theirs["id"], "missing"]),
            headers=headers,
        ).json()

        r = client.get(f"/tasks?ids={mine['id']},{theirs['id']},missing", headers=headers)
        assert r.status_code == 200
        assert [t["id"] for t in r.json()] == [mine["id"]]

        r = client.get(f"/tasks/{blocked['id']}/dependencies", headers=headers)
        assert r.status_code == 200
        assert [t["name"] for t in r.json()] == ["Mine"]

        # deleting a dependency leaves the dangling reference in place
        client.delete(f"/tasks/{mine['id']}", headers=headers)
        r = client.get(f"/tasks/{blocked['id']}", headers=headers)
        assert mine["id"] in r.json()["dependencies"]
        r = client.get(f"/tasks/{blocked['id']}/dependencies", headers=headers)
        assert r.json() == []

    def test_categories_tags_and_filters(self, client: TestClient, user):
        _, headers = user
        client.post("/tasks", json=task_payload(name="Report", category="Work", tags=["a", "b"]), headers=headers)
        client.post("/tasks", json=task_payload(name="Gym", category="Health", priority="low", tags=["b", "c"]), headers=headers)
        client.post("/tasks", json=task_payload(name="Misc", category=None, priority="medium", tags=[]), headers=headers)

        r = client.get("/tasks/categories", headers=headers)
        assert r.status_code == 200
        assert sorted(r.json()) == ["Health", "Work"]

        r = client.get("/tasks/tags", headers=headers)
        assert sorted(r.json()) == ["a", "b", "c"]

        r = client.get("/tasks?priority=low", headers=headers)
        assert [t["name"] for t in r.json()] == ["Gym"]

        r = client.get("/tasks?tag=b&sort=priority", headers=headers)
        assert [t["name"] for t in r.json()] == ["Report", "Gym"]

        r = client.get("/tasks?search=GY", headers=headers)
        assert [t["name"] for t in r.json()] == ["Gym"]

        r = client.get("/tasks?sort=sideways", headers=headers)
        assert r.status_code == 422

    def test_suggestions_fall_back_without_ai(self, client: TestClient, user):
        _, headers = user
        r = client.post("/tasks/suggestions", json={"name": "Plan trip"}, headers=headers)
        assert r.status_code == 200
        assert r.json() == {"priority": "medium", "duration": 1, "dependencies": [], "tags": []}

    def test_non_finite_numbers_are_rejected(self, client: TestClient, user):
        _, headers = user
        body = '{"name": "x", "deadline": "2030-01-01T00:00:00", "duration": NaN}'
        r = client.post("/tasks", content=body, headers={**headers, "Content-Type": "application/json"})
        assert r.status_code == 422
        assert r.json()["detail"][0]["loc"] == ["body", "duration"]
        assert "input" not in r.json()["detail"][0]

        body = body.replace("NaN", "Infinity")
        r = client.post("/tasks", content=body, headers={**headers, "Content-Type": "application/json"})
        assert r.status_code == 422

    def test_store_outage(self, client: TestClient, user, monkeypatch):
        from sqlalchemy.exc import OperationalError
        from sqlalchemy.orm import Session

        def broken(*args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        _, headers = user
        monkeypatch.setattr(Session, "commit", broken)
        r = client.post("/tasks", json=task_payload(), headers=headers)
        assert r.status_code == 503
        assert r.json() == {"detail": "Task store unavailable"}

        # Listing degrades to an empty list instead of failing
        monkeypatch.setattr(Session, "query", broken)
        r = client.get("/tasks", headers=headers)
        assert r.status_code == 200
        assert r.json() == []

        r = client.get("/dashboard/summary", headers=headers)
        assert r.status_code == 200
        assert r.json()["total_tasks"] == 0

    def test_token_expiration(self, client: TestClient):
        import taskai.config

        original_expire = taskai.config.ACCESS_TOKEN_EXPIRE_MINUTES
        try:
            # Tokens issued now are already past their expiry
            taskai.config.ACCESS_TOKEN_EXPIRE_MINUTES = -1
            _, headers = register_and_login(client)

            r = client.post("/tasks", json=task_payload(), headers=headers)
            assert r.status_code == 401
            assert "expired" in r.json()["detail"].lower()
        finally:
            taskai.config.ACCESS_TOKEN_EXPIRE_MINUTES = original_expire

    def test_concurrent_operations(self, client: TestClient, user):
        import concurrent.futures

        email, headers = user

        def create_task(i):
            return client.post("/tasks", json=task_payload(name=f"Concurrent Task {i}"), headers=headers)

        with concurrent.futures.ThreadPoolExecutor(max_workers=3) as executor:
            futures = [executor.submit(create_task, i) for i in range(5)]
            responses = [f.result() for f in futures]

        assert all(r.status_code == 201 for r in responses)

        r = client.get("/tasks", headers=headers)
        assert r.status_code == 200
        tasks = r.json()
        assert len(tasks) == 5
        assert len({task["name"] for task in tasks}) == 5

        me = client.get("/auth/me", headers=headers).json()
        assert all(task["owner_id"] == me["id"] for task in tasks)
