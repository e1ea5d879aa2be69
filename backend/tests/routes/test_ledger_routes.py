"""Credits, policies, payment webhook and infrastructure endpoints."""

from app.core.ulid_helper import generate_ulid


def _purchase(client_id: str, reference: str = "pi_route", **extra):
    body = {"purchase_reference": reference, "client_id": client_id, "amount_cents": 40000}
    body.update(extra)
    return body


class TestPaymentWebhook:
    def test_missing_secret_is_unauthorized(self, client, client_id):
        response = client.post("/api/v1/webhooks/payments", json=_purchase(client_id))

        assert response.status_code == 401

    def test_wrong_secret_is_unauthorized(self, client, client_id):
        response = client.post(
            "/api/v1/webhooks/payments",
            json=_purchase(client_id),
            headers={"X-Webhook-Secret": "nope"},
        )

        assert response.status_code == 401

    def test_purchase_without_amount_is_rejected(
        self, client, client_id, webhook_headers, admin_headers
    ):
        body = _purchase(client_id, package_size=4)
        del body["amount_cents"]

        response = client.post("/api/v1/webhooks/payments", json=body, headers=webhook_headers)

        assert response.status_code == 422
        balance = client.get(f"/api/v1/admin/clients/{client_id}/credits", headers=admin_headers)
        assert balance.json()["total_credits"] == 0

    def test_purchase_is_issued_once(self, client, client_id, webhook_headers, notification_client):
        body = _purchase(client_id, package_size=4, provider_event="checkout.completed")

        first = client.post("/api/v1/webhooks/payments", json=body, headers=webhook_headers)
        replay = client.post("/api/v1/webhooks/payments", json=body, headers=webhook_headers)

        assert first.status_code == 200
        assert first.json()["credits_issued"] == 4
        assert first.json()["duplicate"] is False
        assert replay.json()["duplicate"] is True
        assert replay.json()["grant_id"] == first.json()["grant_id"]


class TestCredits:
    def test_balance_after_purchase(self, client, client_id, auth_headers, webhook_headers):
        client.post(
            "/api/v1/webhooks/payments",
            json=_purchase(client_id, package_size=4),
            headers=webhook_headers,
        )

        data = client.get("/api/v1/credits", headers=auth_headers).json()

        assert data["client_id"] == client_id
        assert data["total_credits"] == 4
        assert data["package_credits"] == 4
        assert data["has_used_grace"] is False
        assert data["credits"][0]["amount_cents"] == 40000

    def test_admin_can_view_any_client(self, client, client_id, admin_headers, auth_headers, make_grant):
        make_grant(client_id, credits=2)

        as_admin = client.get(f"/api/v1/admin/clients/{client_id}/credits", headers=admin_headers)
        as_client = client.get(f"/api/v1/admin/clients/{client_id}/credits", headers=auth_headers)

        assert as_admin.status_code == 200
        assert as_admin.json()["total_credits"] == 2
        assert as_client.status_code == 403


class TestPolicies:
    def test_public_policy_unavailable_before_publishing(self, client):
        response = client.get("/api/v1/cancellation-policy")

        assert response.status_code == 503

    def test_admin_publishes_and_public_reads(self, client, admin_headers):
        created = client.post(
            "/api/v1/admin/cancellation-policies", json={}, headers=admin_headers
        )
        updated = client.post(
            "/api/v1/admin/cancellation-policies",
            json={"late_fees": {"USD": 3000}, "standard_cancellation_hours": 24},
            headers=admin_headers,
        )

        assert created.status_code == 201
        assert created.json()["version"] == 1
        assert created.json()["late_fees"] == {"usd": 2500, "cad": 3425}
        assert updated.json()["version"] == 2

        public = client.get("/api/v1/cancellation-policy").json()
        assert public["version"] == 2
        assert public["late_fees"] == {"usd": 3000}

        history = client.get("/api/v1/admin/cancellation-policies", headers=admin_headers).json()
        assert [p["version"] for p in history] == [2, 1]

    def test_invalid_policy_is_bad_request(self, client, admin_headers):
        response = client.post(
            "/api/v1/admin/cancellation-policies",
            json={"standard_cancellation_hours": 2, "late_cancellation_hours": 5},
            headers=admin_headers,
        )

        assert response.status_code == 400

    def test_clients_cannot_publish(self, client, auth_headers):
        response = client.post("/api/v1/admin/cancellation-policies", json={}, headers=auth_headers)

        assert response.status_code == 403

    def test_waiver_round(self, client, admin_headers):
        missing = client.get("/api/v1/admin/waiver-policies/active", headers=admin_headers)
        created = client.post(
            "/api/v1/admin/waiver-policies",
            json={"policy_text": "I understand sessions are not emergency care."},
            headers=admin_headers,
        )
        active = client.get("/api/v1/admin/waiver-policies/active", headers=admin_headers)

        assert missing.status_code == 404
        assert created.status_code == 201
        assert active.json()["version"] == 1


class TestInfrastructure:
    def test_health_and_ready(self, client):
        assert client.get("/health").json()["status"] == "healthy"
        assert client.get("/ready").json() == {"status": "ok", "active_policy_version": None}

    def test_request_id_is_echoed_or_generated(self, client):
        echoed = client.get("/health", headers={"X-Request-ID": "req-123"})
        generated = client.get("/health")

        assert echoed.headers["X-Request-ID"] == "req-123"
        assert len(generated.headers["X-Request-ID"]) == 26

    def test_prometheus_exposes_ledger_metrics(self, client):
        response = client.get("/metrics/prometheus")

        assert response.status_code == 200
        assert "session_ledger_credits_consumed_total" in response.text

    def test_new_client_gets_empty_balance(self, client, make_headers):
        headers = make_headers(generate_ulid())

        response = client.get("/api/v1/credits", headers=headers)

        assert response.status_code == 200
        assert response.json()["total_credits"] == 0

    def test_garbage_token_is_unauthorized(self, client):
        response = client.get("/api/v1/credits", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401

    def test_ready_reports_active_policy_version(self, client, active_policy):
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["active_policy_version"] == active_policy.version
