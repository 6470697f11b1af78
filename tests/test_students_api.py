"""
Academia API — /estudiantes Endpoint Tests
===========================================

What:  End-to-end tests through HTTP against a real (temporary) SQLite database.
How:   The `client` fixture rebuilds the schema before every test.
"""

import pytest
from unittest.mock import AsyncMock, patch

from sqlalchemy.exc import OperationalError

from academia.database import get_db_session
from academia.main import app


async def _create(client, nombre="Ana", email="ana@example.com"):
    return await client.post("/estudiantes", json={"nombre": nombre, "email": email})


class TestStudentLifecycle:

    @pytest.mark.asyncio
    async def test_create_get_update_delete_scenario(self, client):
        created = await _create(client)
        assert created.status_code == 201
        body = created.json()
        assert body["id"] == 1
        assert body["nombre"] == "Ana"
        assert body["email"] == "ana@example.com"

        fetched = await client.get("/estudiantes/1")
        assert fetched.status_code == 200
        assert fetched.json() == body

        updated = await client.put("/estudiantes/1", json={"nombre": "Ana Maria"})
        assert updated.status_code == 200
        assert updated.json()["nombre"] == "Ana Maria"
        assert updated.json()["email"] == "ana@example.com"

        deleted = await client.delete("/estudiantes/1")
        assert deleted.status_code == 200
        assert deleted.json() == {"mensaje": "Estudiante eliminado correctamente", "id": "1"}

        gone = await client.get("/estudiantes/1")
        assert gone.status_code == 404
        assert gone.json()["mensaje"] == "Estudiante no encontrado"
        assert gone.json()["codigo"] == "not_found"
        assert "error" not in gone.json()

    @pytest.mark.asyncio
    async def test_timestamps_are_camel_case_and_equal_on_insert(self, client):
        body = (await _create(client)).json()

        assert body["createdAt"] == body["updatedAt"]
        assert "created_at" not in body

        updated = (await client.put("/estudiantes/1", json={"nombre": "Ana Maria"})).json()
        assert updated["createdAt"] == body["createdAt"]

    @pytest.mark.asyncio
    async def test_ids_are_fresh_and_unique(self, client):
        first = (await _create(client, "Ana", "ana@example.com")).json()
        second = (await _create(client, "Luis", "luis@example.com")).json()
        assert first["id"] != second["id"]

    @pytest.mark.asyncio
    async def test_list_returns_every_student(self, client):
        for i in range(3):
            assert (await _create(client, f"Alumno {i}", f"alumno{i}@example.com")).status_code == 201

        response = await client.get("/estudiantes")

        assert response.status_code == 200
        assert len(response.json()) == 3

    @pytest.mark.asyncio
    async def test_list_empty(self, client):
        response = await client.get("/estudiantes")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_name_alias_accepted_on_create(self, client):
        response = await client.post(
            "/estudiantes", json={"name": "Eva", "email": "eva@example.com"}
        )
        assert response.status_code == 201
        assert response.json()["nombre"] == "Eva"


class TestCreateValidation:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [{"email": "ana@example.com"}, {"nombre": "Ana"}, {}],
    )
    async def test_missing_fields_rejected_and_nothing_persisted(self, client, payload):
        response = await client.post("/estudiantes", json=payload)

        assert response.status_code == 400
        assert response.json()["codigo"] == "validation_error"
        assert response.json()["error"] == "Los campos nombre y email son obligatorios"
        assert (await client.get("/estudiantes")).json() == []

    @pytest.mark.asyncio
    async def test_no_body(self, client):
        response = await client.post("/estudiantes")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_email(self, client):
        response = await _create(client, email="ana-at-example")

        assert response.status_code == 400
        assert response.json()["detalles"] == {"field": "email"}

    @pytest.mark.asyncio
    async def test_duplicate_email(self, client):
        assert (await _create(client)).status_code == 201

        response = await _create(client, nombre="Otra Ana")

        assert response.status_code == 400
        assert response.json()["codigo"] == "unique_violation"
        assert response.json()["error"] == "El email 'ana@example.com' ya está registrado"
        assert len((await client.get("/estudiantes")).json()) == 1

    @pytest.mark.asyncio
    async def test_malformed_json(self, client):
        response = await client.post(
            "/estudiantes",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["codigo"] == "validation_error"

    @pytest.mark.asyncio
    async def test_wrong_field_type(self, client):
        response = await client.post("/estudiantes", json={"nombre": 12, "email": "x@example.com"})
        assert response.status_code == 400


class TestUpdate:

    @pytest.mark.asyncio
    async def test_email_only_keeps_name(self, client):
        await _create(client)

        response = await client.put("/estudiantes/1", json={"email": "ana.m@example.com"})

        assert response.status_code == 200
        assert response.json()["nombre"] == "Ana"
        assert response.json()["email"] == "ana.m@example.com"

    @pytest.mark.asyncio
    async def test_empty_body_returns_record_unchanged(self, client):
        created = (await _create(client)).json()

        response = await client.put("/estudiantes/1", json={})

        assert response.status_code == 200
        assert response.json() == created

    @pytest.mark.asyncio
    async def test_empty_name_rejected_and_record_unchanged(self, client):
        await _create(client)

        response = await client.put("/estudiantes/1", json={"nombre": ""})

        assert response.status_code == 400
        assert (await client.get("/estudiantes/1")).json()["nombre"] == "Ana"

    @pytest.mark.asyncio
    async def test_email_taken_by_another_student(self, client):
        await _create(client, "Ana", "ana@example.com")
        await _create(client, "Luis", "luis@example.com")

        response = await client.put("/estudiantes/2", json={"email": "ana@example.com"})

        assert response.status_code == 400
        assert (await client.get("/estudiantes/2")).json()["email"] == "luis@example.com"

    @pytest.mark.asyncio
    async def test_invalid_email(self, client):
        await _create(client)
        response = await client.put("/estudiantes/1", json={"email": "nope"})
        assert response.status_code == 400


class TestNotFound:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("student_id", ["999", "abc", "0"])
    async def test_unknown_id(self, client, student_id):
        assert (await client.get(f"/estudiantes/{student_id}")).status_code == 404
        assert (await client.put(f"/estudiantes/{student_id}", json={"nombre": "X"})).status_code == 404
        assert (await client.delete(f"/estudiantes/{student_id}")).status_code == 404

    @pytest.mark.asyncio
    async def test_second_delete_is_not_found(self, client):
        await _create(client)
        assert (await client.delete("/estudiantes/1")).status_code == 200
        assert (await client.delete("/estudiantes/1")).status_code == 404


def _failing_commit(message="database is locked"):
    return patch(
        "sqlalchemy.ext.asyncio.AsyncSession.commit",
        new_callable=AsyncMock,
        side_effect=OperationalError("COMMIT", {}, Exception(message)),
    )


class TestWriteDurability:
    """A write that cannot be committed must never be answered with success."""

    @pytest.mark.asyncio
    async def test_create_commit_failure_is_500_and_nothing_persisted(self, client):
        with _failing_commit():
            response = await _create(client)

        assert response.status_code == 500
        assert response.json()["codigo"] == "server_error"
        assert "locked" not in response.text
        assert (await client.get("/estudiantes")).json() == []

    @pytest.mark.asyncio
    async def test_update_commit_failure_keeps_stored_record(self, client):
        await _create(client)

        with _failing_commit():
            response = await client.put("/estudiantes/1", json={"nombre": "Ana Maria"})

        assert response.status_code == 500
        assert (await client.get("/estudiantes/1")).json()["nombre"] == "Ana"

    @pytest.mark.asyncio
    async def test_delete_commit_failure_keeps_stored_record(self, client):
        await _create(client)

        with _failing_commit():
            response = await client.delete("/estudiantes/1")

        assert response.status_code == 500
        assert (await client.get("/estudiantes/1")).status_code == 200


class TestInfrastructure:

    @pytest.mark.asyncio
    async def test_store_failure_returns_generic_500(self, client):
        async def broken_session():
            session = AsyncMock()
            session.execute = AsyncMock(
                side_effect=OperationalError("SELECT", {}, Exception("unable to open database file"))
            )
            yield session

        app.dependency_overrides[get_db_session] = broken_session

        response = await client.get("/estudiantes")

        assert response.status_code == 500
        assert response.json()["codigo"] == "server_error"
        assert response.json()["error"] == "Error al obtener la lista de estudiantes"
        assert "unable to open" not in response.text

    @pytest.mark.asyncio
    async def test_request_id_header_echoed(self, client):
        response = await client.get("/estudiantes", headers={"X-Request-ID": "abc12345"})
        assert response.headers["X-Request-ID"] == "abc12345"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, client):
        response = await client.get("/estudiantes")
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, client):
        response = await client.get("/estudiantes/42", headers={"X-Request-ID": "trace-42"})
        assert response.json()["request_id"] == "trace-42"

    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        response = await client.get("/cursos")
        assert response.status_code == 404
        assert response.json()["codigo"] == "http_error"
        assert "mensaje" in response.json()

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] == "connected"
