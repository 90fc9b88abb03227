"""Tests for patient no-show block endpoints."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import Update, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.no_show_policy import as_utc
from app.models import patients

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


async def _stored_patient(db_session, patient_id) -> dict:
    result = await db_session.execute(select(patients).where(patients.c.id == patient_id))
    return dict(result.mappings().one())


@pytest.mark.asyncio
async def test_unblock_patient_records_audit(
    client: AsyncClient,
    db_session,
    clinic: dict,
    make_patient,
    make_staff,
    headers_for,
) -> None:
    """Test unblocking clears the block and stamps who and when."""
    blocked = await make_patient(
        no_show_blocked_until=NOW + timedelta(days=20),
        no_show_blocked_at=NOW - timedelta(days=10),
    )
    owner = await make_staff(role="owner")

    response = await client.post(
        f"/api/v1/clinics/{clinic['id']}/patients/{blocked['id']}/unblock",
        headers=headers_for(owner),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["is_blocked"] is False
    assert data["no_show_blocked_until"] is None
    assert data["no_show_unblocked_by"] == str(owner["id"])

    stored = await _stored_patient(db_session, blocked["id"])
    assert stored["no_show_blocked_until"] is None
    assert as_utc(stored["no_show_unblocked_at"]) == NOW
    assert stored["no_show_unblocked_by"] == owner["id"]
    assert stored["no_show_blocked_at"] is not None


@pytest.mark.asyncio
async def test_unblock_without_block_is_noop(
    client: AsyncClient,
    db_session,
    clinic: dict,
    patient: dict,
    owner_headers: dict,
) -> None:
    """Test a patient with no recorded block is returned unchanged."""
    response = await client.post(
        f"/api/v1/clinics/{clinic['id']}/patients/{patient['id']}/unblock",
        headers=owner_headers,
    )

    assert response.status_code == 200
    assert response.json()["is_blocked"] is False

    stored = await _stored_patient(db_session, patient["id"])
    assert stored["no_show_unblocked_at"] is None
    assert stored["no_show_unblocked_by"] is None


def _change_block_before_write(monkeypatch, patient_id, new_until) -> None:
    """Run a competing block update right before the first UPDATE on patients."""
    original_execute = AsyncSession.execute
    pending = [True]

    async def execute(self, statement, *args, **kwargs):
        if pending and isinstance(statement, Update) and statement.table is patients:
            pending.clear()
            await original_execute(
                self,
                update(patients)
                .where(patients.c.id == patient_id)
                .values(no_show_blocked_until=new_until),
            )
        return await original_execute(self, statement, *args, **kwargs)

    monkeypatch.setattr(AsyncSession, "execute", execute)


@pytest.mark.asyncio
async def test_unblock_keeps_block_renewed_after_read(
    client: AsyncClient,
    db_session,
    clinic: dict,
    make_patient,
    owner_headers: dict,
    monkeypatch,
) -> None:
    """Test a block written between the read and the write is not cleared."""
    blocked = await make_patient(no_show_blocked_until=NOW + timedelta(days=20))
    renewed_until = NOW + timedelta(days=60)
    _change_block_before_write(monkeypatch, blocked["id"], renewed_until)

    response = await client.post(
        f"/api/v1/clinics/{clinic['id']}/patients/{blocked['id']}/unblock",
        headers=owner_headers,
    )

    assert response.status_code == 409
    assert response.json()["error"] == "ConflictException"

    stored = await _stored_patient(db_session, blocked["id"])
    assert as_utc(stored["no_show_blocked_until"]) == renewed_until
    assert stored["no_show_unblocked_at"] is None
    assert stored["no_show_unblocked_by"] is None


@pytest.mark.asyncio
async def test_unblock_after_concurrent_unblock_is_noop(
    client: AsyncClient,
    db_session,
    clinic: dict,
    make_patient,
    owner_headers: dict,
    monkeypatch,
) -> None:
    """Test losing the race to another unblock leaves the first audit stamps alone."""
    blocked = await make_patient(no_show_blocked_until=NOW + timedelta(days=20))
    _change_block_before_write(monkeypatch, blocked["id"], None)

    response = await client.post(
        f"/api/v1/clinics/{clinic['id']}/patients/{blocked['id']}/unblock",
        headers=owner_headers,
    )

    assert response.status_code == 200
    assert response.json()["is_blocked"] is False

    stored = await _stored_patient(db_session, blocked["id"])
    assert stored["no_show_blocked_until"] is None
    assert stored["no_show_unblocked_at"] is None


@pytest.mark.asyncio
async def test_unblock_unknown_patient(
    client: AsyncClient,
    clinic: dict,
    owner_headers: dict,
) -> None:
    """Test unblocking a patient outside the clinic."""
    response = await client.post(
        f"/api/v1/clinics/{clinic['id']}/patients/{uuid4()}/unblock",
        headers=owner_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["receptionist", "administrative", "professional"])
async def test_unblock_requires_admin(
    client: AsyncClient,
    db_session,
    clinic: dict,
    make_patient,
    make_staff,
    headers_for,
    role: str,
) -> None:
    """Test roles without the admin permission cannot unblock."""
    blocked = await make_patient(no_show_blocked_until=NOW + timedelta(days=20))
    staff = await make_staff(role=role)

    response = await client.post(
        f"/api/v1/clinics/{clinic['id']}/patients/{blocked['id']}/unblock",
        headers=headers_for(staff),
    )

    assert response.status_code == 403
    stored = await _stored_patient(db_session, blocked["id"])
    assert stored["no_show_blocked_until"] is not None


@pytest.mark.asyncio
async def test_super_admin_can_unblock(
    client: AsyncClient,
    clinic: dict,
    make_patient,
    make_staff,
    headers_for,
) -> None:
    """Test the platform-wide override without a clinic role."""
    blocked = await make_patient(no_show_blocked_until=NOW + timedelta(days=20))
    root = await make_staff(is_super_admin=True)

    response = await client.post(
        f"/api/v1/clinics/{clinic['id']}/patients/{blocked['id']}/unblock",
        headers=headers_for(root),
    )

    assert response.status_code == 200
    assert response.json()["no_show_unblocked_by"] == str(root["id"])


@pytest.mark.asyncio
async def test_list_blocked_patients(
    client: AsyncClient,
    clinic: dict,
    professional: dict,
    make_patient,
    owner_headers: dict,
) -> None:
    """Test only blocks expiring after now are listed, soonest first."""
    later = await make_patient(
        name="Later",
        no_show_blocked_until=NOW + timedelta(days=60),
        no_show_blocked_professional_id=professional["id"],
    )
    sooner = await make_patient(name="Sooner", no_show_blocked_until=NOW + timedelta(days=5))
    await make_patient(name="Expired", no_show_blocked_until=NOW - timedelta(minutes=1))

    response = await client.get(
        f"/api/v1/clinics/{clinic['id']}/patients/blocked",
        headers=owner_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [item["id"] for item in data["items"]] == [str(sooner["id"]), str(later["id"])]
    assert data["items"][0]["professional_name"] == "-"
    assert data["items"][1]["professional_name"] == "Dra. Ana Souza"


@pytest.mark.asyncio
async def test_unblocked_patient_leaves_the_list(
    client: AsyncClient,
    clinic: dict,
    make_patient,
    owner_headers: dict,
) -> None:
    """Test the list reflects an unblock immediately."""
    blocked = await make_patient(no_show_blocked_until=NOW + timedelta(days=20))
    base = f"/api/v1/clinics/{clinic['id']}/patients"

    await client.post(f"{base}/{blocked['id']}/unblock", headers=owner_headers)
    response = await client.get(f"{base}/blocked", headers=owner_headers)

    assert response.json()["total"] == 0
