"""HTTP-level tests for the API routes."""

from decimal import Decimal

API = "/api/v1"


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["health"] == "/health"


class TestAuth:
    def test_missing_token(self, client):
        assert client.get(f"{API}/materials/").status_code == 401

    def test_garbage_token(self, client):
        response = client.get(f"{API}/materials/", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_wrong_role(self, client, retailer_headers):
        response = client.post(
            f"{API}/materials/",
            json={"name": "Tea", "hsn_code": "0902", "gst_rate": "5", "units_per_packet": 1, "mrp_per_packet": "40"},
            headers=retailer_headers,
        )
        assert response.status_code == 403


class TestMaterialsApi:
    def test_create_and_fetch_by_code(self, client, admin_headers, retailer_headers):
        response = client.post(
            f"{API}/materials/",
            json={
                "name": "Masala Chips",
                "hsn_code": "2005",
                "gst_rate": "12",
                "units_per_packet": 20,
                "mrp_per_packet": "200.00",
                "commission_type": "FLAT_PER_UNIT",
                "commission_value": "0.50",
            },
            headers=admin_headers,
        )
        assert response.status_code == 201
        created = response.json()
        assert created["sq_code"] == "SQ-000001"

        fetched = client.get(f"{API}/materials/by-code/SQ-000001", headers=retailer_headers)
        assert fetched.status_code == 200
        assert fetched.json()["id"] == created["id"]

    def test_packet_size_change_rejected(self, client, admin_headers, material):
        response = client.patch(
            f"{API}/materials/{material.id}", json={"units_per_packet": 12}, headers=admin_headers
        )
        assert response.status_code == 409
        assert response.json()["code"] == "immutable_field"

    def test_patch_null_clears_description_only(self, client, admin_headers, material):
        url = f"{API}/materials/{material.id}"
        client.patch(url, json={"description": "Crisp"}, headers=admin_headers)
        response = client.patch(url, json={"description": None}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["description"] is None
        assert response.json()["name"] == "Butter Biscuits"

    def test_schema_validation(self, client, admin_headers):
        response = client.post(
            f"{API}/materials/",
            json={"name": "Bad", "hsn_code": "1", "gst_rate": "5", "units_per_packet": 0, "mrp_per_packet": "1"},
            headers=admin_headers,
        )
        assert response.status_code == 422


class TestErrors:
    def test_not_found_has_code(self, client, admin_headers):
        response = client.get(f"{API}/srns/9999", headers=admin_headers)
        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "not_found"
        assert body["context"]["entity"] == "SRN"

    def test_duplicate_batch_is_conflict(self, client, manufacturer_headers, material):
        payload = {
            "material_id": material.id,
            "batch_number": "LOT-1",
            "manufacture_date": "2026-01-01",
            "expiry_date": "2026-06-01",
            "packets": 5,
        }
        assert client.post(f"{API}/production/", json=payload, headers=manufacturer_headers).status_code == 201
        response = client.post(f"{API}/production/", json=payload, headers=manufacturer_headers)
        assert response.status_code == 409
        assert response.json()["code"] == "duplicate_batch"


class TestEndToEnd:
    def test_srn_to_sale(
        self, client, admin_headers, manufacturer_headers, retailer_headers,
        material, assignment, manufacturer, retailer,
    ):
        # Manufacturer records stock
        response = client.post(
            f"{API}/production/",
            json={
                "sq_code": material.sq_code,
                "batch_number": "LOT-100",
                "manufacture_date": "2026-01-01",
                "expiry_date": "2026-12-31",
                "packets": 20,
                "loose_units": 15,
            },
            headers=manufacturer_headers,
        )
        assert response.status_code == 201

        # Retailer requests and submits
        response = client.post(
            f"{API}/srns/",
            json={
                "manufacturer_id": manufacturer.user_id,
                "lines": [{"material_id": material.id, "packets": 8, "loose_units": 5}],
                "submit": True,
            },
            headers=retailer_headers,
        )
        assert response.status_code == 201
        srn = response.json()
        assert srn["status"] == "SUBMITTED"

        # Admin approves in full
        response = client.post(
            f"{API}/srns/{srn['id']}/process",
            json={"decision": "APPROVE", "lines": [{"material_id": material.id, "packets": 8, "loose_units": 5}]},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "APPROVED"

        available = client.get(
            f"{API}/inventory/manufacturer/available",
            params={"material_id": material.id},
            headers=manufacturer_headers,
        ).json()
        assert (available["available_packets"], available["available_loose_units"]) == (12, 10)

        # Manufacturer dispatches without seeing prices
        response = client.post(f"{API}/dispatches/", json={"srn_id": srn["id"]}, headers=manufacturer_headers)
        assert response.status_code == 201
        dispatch = response.json()
        assert "subtotal" not in dispatch
        assert "packet_price" not in dispatch["items"][0]

        response = client.post(f"{API}/dispatches/{dispatch['id']}/execute", json={}, headers=manufacturer_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "IN_TRANSIT"

        # Retailer sees prices on the same dispatch
        priced = client.get(f"{API}/dispatches/{dispatch['id']}", headers=retailer_headers).json()
        assert Decimal(priced["subtotal"]) == Decimal("850.00")

        # Retailer confirms receipt with a shortfall
        grn = client.get(f"{API}/grns/", headers=retailer_headers).json()[0]
        response = client.post(
            f"{API}/grns/{grn['id']}/confirm",
            json={"lines": [{"material_id": material.id, "received_packets": 8, "received_loose_units": 3}]},
            headers=retailer_headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "CONFIRMED"
        shortfalls = client.get(f"{API}/grns/{grn['id']}/discrepancies", headers=retailer_headers).json()
        assert shortfalls[0]["short_loose_units"] == 2

        # Admin invoices the GRN exactly once
        response = client.post(
            f"{API}/invoices/", json={"grn_id": grn["id"], "is_interstate": False}, headers=admin_headers
        )
        assert response.status_code == 201
        assert Decimal(response.json()["total_amount"]) == Decimal("979.40")
        again = client.post(f"{API}/invoices/", json={"grn_id": grn["id"]}, headers=admin_headers)
        assert again.status_code == 409

        # Retailer sells, opening one packet
        response = client.post(
            f"{API}/sales/", json={"material_id": material.id, "units_sold": 7}, headers=retailer_headers
        )
        assert response.status_code == 201
        assert response.json()["packets_opened"] == 1

        stock = client.get(f"{API}/inventory/retailer", headers=retailer_headers).json()
        assert (stock[0]["full_packets"], stock[0]["loose_units"]) == (7, 6)

        commissions = client.get(f"{API}/commissions/", headers=admin_headers).json()
        assert len(commissions) == 1
        assert Decimal(commissions[0]["amount"]) == Decimal("3.50")

        response = client.post(
            f"{API}/commissions/retailers/{retailer.user_id}/pay-all", headers=admin_headers
        )
        assert response.json() == {"count": 1}

    def test_insufficient_stock_is_conflict(
        self, client, admin_headers, retailer_headers, material, assignment, manufacturer, produce,
    ):
        produce(material.id, packets=30)
        srn = client.post(
            f"{API}/srns/",
            json={
                "manufacturer_id": manufacturer.user_id,
                "lines": [{"material_id": material.id, "packets": 50}],
                "submit": True,
            },
            headers=retailer_headers,
        ).json()

        response = client.post(
            f"{API}/srns/{srn['id']}/process",
            json={"decision": "APPROVE", "lines": [{"material_id": material.id, "packets": 50}]},
            headers=admin_headers,
        )
        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "insufficient_available"
        assert body["context"]["available_packets"] == 30

        assert client.get(f"{API}/srns/{srn['id']}", headers=admin_headers).json()["status"] == "SUBMITTED"

    def test_transactions_scoped_to_caller(self, client, retailer_headers, manufacturer_headers, material, produce):
        produce(material.id, packets=3)
        assert client.get(f"{API}/inventory/transactions", headers=retailer_headers).json() == []
        own = client.get(f"{API}/inventory/transactions", headers=manufacturer_headers).json()
        assert [t["transaction_type"] for t in own] == ["PRODUCTION"]
