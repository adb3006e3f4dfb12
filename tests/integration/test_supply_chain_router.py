"""Integration tests for the supply-chain ledger API endpoints."""

from farmtrace.ledger.blocks import block_hash


async def _create_product(client, headers, batch_code="BATCH-001", name="Tomatoes"):
    resp = await client.post("/products", json={
        "name": name, "batch_code": batch_code, "description": "Vine-ripened",
    }, headers=headers)
    assert resp.status_code == 201
    return resp.json()


async def _add_stage(client, headers, product_id, stage_name, location, **extra):
    return await client.post(
        f"/supply-chain/{product_id}",
        json={"stage_name": stage_name, "location": location, **extra},
        headers=headers,
    )


class TestAddStage:
    async def test_add_stage(self, client, producer):
        product = await _create_product(client, producer["headers"])
        resp = await _add_stage(
            client, producer["headers"], product["id"], "Harvesting", "Farm A",
            description="Picked at dawn", notes="Crate 4",
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["message"] == "Stage added"
        stage = data["stage"]
        assert stage["product_id"] == product["id"]
        assert stage["stage_name"] == "Harvesting"
        assert stage["location"] == "Farm A"
        assert stage["updated_by"] == producer["id"]
        assert stage["updated_by_name"] == "Alice Farmer"
        assert stage["description"] == "Picked at dawn"
        assert stage["notes"] == "Crate 4"
        assert stage["timestamp"].endswith("Z")
        assert data["blockHash"] == block_hash(stage["id"], stage["timestamp"])
        assert len(data["blockHash"]) == 8

    async def test_client_timestamp_ignored(self, client, producer):
        product = await _create_product(client, producer["headers"])
        resp = await _add_stage(
            client, producer["headers"], product["id"], "Harvesting", "Farm A",
            timestamp="1999-01-01T00:00:00.000Z",
        )
        assert resp.status_code == 201
        assert not resp.json()["stage"]["timestamp"].startswith("1999")

    async def test_blank_stage_name_rejected(self, client, producer):
        product = await _create_product(client, producer["headers"])
        resp = await _add_stage(client, producer["headers"], product["id"], "   ", "Farm A")
        assert resp.status_code == 422

    async def test_missing_location_rejected(self, client, producer):
        product = await _create_product(client, producer["headers"])
        resp = await client.post(
            f"/supply-chain/{product['id']}",
            json={"stage_name": "Harvesting"},
            headers=producer["headers"],
        )
        assert resp.status_code == 422

    async def test_requires_token(self, client, producer):
        product = await _create_product(client, producer["headers"])
        resp = await _add_stage(client, {}, product["id"], "Harvesting", "Farm A")
        assert resp.status_code == 401

    async def test_bad_token(self, client, producer):
        product = await _create_product(client, producer["headers"])
        resp = await _add_stage(
            client, {"Authorization": "Bearer forged"}, product["id"], "Harvesting", "Farm A",
        )
        assert resp.status_code == 403

    async def test_consumer_cannot_add(self, client, producer, consumer):
        product = await _create_product(client, producer["headers"])
        resp = await _add_stage(client, consumer["headers"], product["id"], "Harvesting", "Farm A")
        assert resp.status_code == 403

    async def test_unknown_product_rejected_by_store(self, client, producer):
        resp = await _add_stage(client, producer["headers"], 9999, "Harvesting", "Farm A")
        assert resp.status_code == 409


class TestGetProductStages:
    async def test_ascending_journey(self, client, producer):
        product = await _create_product(client, producer["headers"])
        for name, location in [("Harvesting", "Farm A"), ("Processing", "Plant B"), ("Retail", "Shop C")]:
            await _add_stage(client, producer["headers"], product["id"], name, location)

        resp = await client.get(f"/supply-chain/{product['id']}")
        assert resp.status_code == 200
        stages = resp.json()
        assert [s["stage_name"] for s in stages] == ["Harvesting", "Processing", "Retail"]
        stamps = [s["timestamp"] for s in stages]
        assert stamps == sorted(stamps)
        assert set(stages[0]) == {
            "id", "product_id", "stage_name", "location", "updated_by",
            "updated_by_name", "description", "notes", "timestamp",
        }

    async def test_empty_journey(self, client, producer):
        product = await _create_product(client, producer["headers"])
        resp = await client.get(f"/supply-chain/{product['id']}")
        assert resp.status_code == 200
        assert resp.json() == []

    async def test_unknown_product_is_404(self, client):
        resp = await client.get("/supply-chain/4242")
        assert resp.status_code == 404


class TestBatchLookup:
    async def test_unknown_batch_code(self, client):
        resp = await client.get("/supply-chain/batch/NOPE-1")
        assert resp.status_code == 404
        assert resp.json()["productNotFound"] is True

    async def test_batch_without_stages(self, client, producer):
        product = await _create_product(client, producer["headers"], batch_code="NEW-1", name="Basil")
        resp = await client.get("/supply-chain/batch/NEW-1")
        assert resp.status_code == 200
        data = resp.json()
        assert data["noStages"] is True
        assert data["stages"] == []
        assert data["product"] == {"id": product["id"], "name": "Basil", "batch_code": "NEW-1"}

    async def test_batch_with_stages(self, client, producer):
        product = await _create_product(client, producer["headers"], batch_code="OLD-1", name="Honey")
        await _add_stage(client, producer["headers"], product["id"], "Extraction", "Apiary")
        await _add_stage(client, producer["headers"], product["id"], "Bottling", "Plant")

        resp = await client.get("/supply-chain/batch/OLD-1")
        assert resp.status_code == 200
        stages = resp.json()
        assert isinstance(stages, list)
        assert [s["stage_name"] for s in stages] == ["Extraction", "Bottling"]
        assert all(s["product_name"] == "Honey" for s in stages)
        assert all(s["batch_code"] == "OLD-1" for s in stages)

    async def test_batch_code_with_slashes(self, client, producer):
        product = await _create_product(client, producer["headers"], batch_code="LOT/2024/01")
        resp = await client.get("/supply-chain/batch/LOT%2F2024%2F01")
        assert resp.status_code == 200
        assert resp.json()["noStages"] is True
        assert resp.json()["product"]["batch_code"] == "LOT/2024/01"

        await _add_stage(client, producer["headers"], product["id"], "Harvesting", "Farm A")
        resp = await client.get("/supply-chain/batch/LOT%2F2024%2F01")
        assert resp.status_code == 200
        assert [s["batch_code"] for s in resp.json()] == ["LOT/2024/01"]

    async def test_unknown_code_with_slashes(self, client):
        resp = await client.get("/supply-chain/batch/NO/SUCH/LOT")
        assert resp.status_code == 404
        assert resp.json()["productNotFound"] is True


class TestProducerViews:
    async def test_producer_stages_descending(self, client, producer, other_producer):
        apples = await _create_product(client, producer["headers"], batch_code="APL", name="Apples")
        pears = await _create_product(client, producer["headers"], batch_code="PER", name="Pears")
        theirs = await _create_product(client, other_producer["headers"], batch_code="BOB", name="Plums")
        await _add_stage(client, producer["headers"], apples["id"], "Harvesting", "Orchard")
        await _add_stage(client, producer["headers"], pears["id"], "Harvesting", "Orchard")
        await _add_stage(client, other_producer["headers"], theirs["id"], "Harvesting", "Field")

        resp = await client.get("/supply-chain/producer/stages", headers=producer["headers"])
        assert resp.status_code == 200
        feed = resp.json()
        assert [s["product_name"] for s in feed] == ["Pears", "Apples"]
        stamps = [s["timestamp"] for s in feed]
        assert stamps == sorted(stamps, reverse=True)

    async def test_producer_stages_requires_token(self, client):
        resp = await client.get("/supply-chain/producer/stages")
        assert resp.status_code == 401

    async def test_products_with_stages(self, client, producer):
        zero = await _create_product(client, producer["headers"], batch_code="ZERO")
        three = await _create_product(client, producer["headers"], batch_code="THREE")
        one = await _create_product(client, producer["headers"], batch_code="ONE")
        for i in range(3):
            await _add_stage(client, producer["headers"], three["id"], f"Step {i}", "Farm")
        await _add_stage(client, producer["headers"], one["id"], "Step 0", "Farm")

        resp = await client.get(
            "/supply-chain/producer/products-with-stages", headers=producer["headers"],
        )
        assert resp.status_code == 200
        entries = resp.json()
        assert [e["stageCount"] for e in entries] == [3, 1, 0]
        assert [e["id"] for e in entries] == [three["id"], one["id"], zero["id"]]
        assert entries[2]["stages"] == []
        assert [s["stage_name"] for s in entries[0]["stages"]] == ["Step 0", "Step 1", "Step 2"]
        assert entries[0]["batch_code"] == "THREE"


class TestStatsAndVerify:
    async def test_stats(self, client, producer, other_producer):
        product = await _create_product(client, producer["headers"])
        await _add_stage(client, producer["headers"], product["id"], "Harvesting", "Farm A")
        await _add_stage(client, other_producer["headers"], product["id"], "Transport", "Road")
        await _add_stage(client, producer["headers"], product["id"], "Retail", "Shop")

        resp = await client.get(f"/supply-chain/{product['id']}/stats")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total_stages"] == 3
        assert data["unique_contributors"] == 2
        assert data["first_stage_date"] <= data["last_stage_date"]

        journey = (await client.get(f"/supply-chain/{product['id']}")).json()
        assert data["first_stage_date"] == journey[0]["timestamp"]
        assert data["last_stage_date"] == journey[-1]["timestamp"]

    async def test_stats_empty(self, client, producer):
        product = await _create_product(client, producer["headers"])
        resp = await client.get(f"/supply-chain/{product['id']}/stats")
        assert resp.json() == {
            "total_stages": 0,
            "first_stage_date": None,
            "last_stage_date": None,
            "unique_contributors": 0,
        }

    async def test_verify(self, client, producer):
        product = await _create_product(client, producer["headers"])
        await _add_stage(client, producer["headers"], product["id"], "Harvesting", "Farm A")
        resp = await client.get(f"/supply-chain/{product['id']}/verify")
        assert resp.status_code == 200
        assert resp.json() == {
            "isValid": True,
            "totalStages": 1,
            "message": "Blockchain integrity verified",
        }

    async def test_verify_unknown_product(self, client):
        resp = await client.get("/supply-chain/555/verify")
        assert resp.status_code == 404


class TestTemplatesAndHealth:
    async def test_templates(self, client):
        resp = await client.get("/supply-chain/templates")
        assert resp.status_code == 200
        names = [t["name"] for t in resp.json()]
        assert names[0] == "Harvesting"
        assert "Quality Check" in names
        assert len(names) == 7

    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["service"] == "farmtrace"


class TestEndToEnd:
    async def test_scan_after_two_stages(self, client, producer):
        product = await _create_product(client, producer["headers"], batch_code="BATCH-001")
        await _add_stage(client, producer["headers"], product["id"], "Harvesting", "Farm A")
        await _add_stage(client, producer["headers"], product["id"], "Processing", "Plant B")

        scan = await client.get("/supply-chain/batch/BATCH-001")
        assert scan.status_code == 200
        assert [(s["stage_name"], s["location"]) for s in scan.json()] == [
            ("Harvesting", "Farm A"),
            ("Processing", "Plant B"),
        ]

        verify = await client.get(f"/supply-chain/{product['id']}/verify")
        assert verify.json()["isValid"] is True
        assert verify.json()["totalStages"] == 2


class TestAllStages:
    async def test_all_stages_across_products(self, client, producer, other_producer):
        mine = await _create_product(client, producer["headers"], batch_code="MINE")
        theirs = await _create_product(client, other_producer["headers"], batch_code="THEIRS")
        await _add_stage(client, producer["headers"], mine["id"], "Harvesting", "Farm A")
        await _add_stage(client, other_producer["headers"], theirs["id"], "Harvesting", "Field B")
        await _add_stage(client, producer["headers"], mine["id"], "Processing", "Plant C")

        resp = await client.get("/supply-chain/stages/all")
        assert resp.status_code == 200
        stages = resp.json()
        assert [s["location"] for s in stages] == ["Farm A", "Field B", "Plant C"]
        assert [s["updated_by_name"] for s in stages] == ["Alice Farmer", "Bob Grower", "Alice Farmer"]
        stamps = [s["timestamp"] for s in stages]
        assert stamps == sorted(stamps)

    async def test_all_stages_empty(self, client):
        resp = await client.get("/supply-chain/stages/all")
        assert resp.status_code == 200
        assert resp.json() == []
