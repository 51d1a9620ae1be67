import asyncio

import pytest
from httpx import AsyncClient

from app.api.v1.attendance_sessions import service, store
from app.core.attendance_code import is_well_formed_code
from app.core.enums import SessionState
from app.core.exceptions import NotFound

from conftest import School, auth_headers


@pytest.mark.asyncio
async def test_open_session_issues_code(session_factory, scheduler, school: School) -> None:
    class_id = school.school_class.id
    async with session_factory() as db:
        opened = await service.open_session(db, scheduler, class_id)

    assert opened.class_id == class_id
    assert opened.already_active is False
    assert is_well_formed_code(opened.code)
    assert opened.rotation_interval_seconds == scheduler.interval_seconds
    assert scheduler.is_running(class_id)

    async with session_factory() as db:
        row = await store.get_session(db, class_id)
    assert row.code == opened.code


@pytest.mark.asyncio
async def test_open_twice_returns_same_code(session_factory, scheduler, school: School) -> None:
    class_id = school.school_class.id
    async with session_factory() as db:
        first = await service.open_session(db, scheduler, class_id)
    task = scheduler._tasks[class_id]

    async with session_factory() as db:
        second = await service.open_session(db, scheduler, class_id)

    assert second.already_active is True
    assert second.code == first.code
    # The running timer is left alone
    assert scheduler._tasks[class_id] is task


@pytest.mark.asyncio
async def test_open_restarts_missing_timer(session_factory, scheduler, school: School) -> None:
    """A session row without a timer (e.g. after a process restart) gets its rotation back."""
    class_id = school.school_class.id
    async with session_factory() as db:
        await store.create_session(db, class_id, "ABCDEF")
    assert not scheduler.is_running(class_id)

    async with session_factory() as db:
        opened = await service.open_session(db, scheduler, class_id)

    assert opened.already_active is True
    assert opened.code == "ABCDEF"
    assert scheduler.is_running(class_id)


@pytest.mark.asyncio
async def test_concurrent_opens_converge(session_factory, scheduler, school: School) -> None:
    class_id = school.school_class.id

    async def _open():
        async with session_factory() as db:
            return await service.open_session(db, scheduler, class_id)

    results = await asyncio.gather(*[_open() for _ in range(4)])

    codes = {r.code for r in results}
    assert len(codes) == 1
    assert sum(1 for r in results if not r.already_active) == 1
    assert scheduler.active_classes() == [class_id]

    async with session_factory() as db:
        row = await store.get_session(db, class_id)
    assert row.code in codes


@pytest.mark.asyncio
async def test_open_unknown_class(session_factory, scheduler, school: School) -> None:
    async with session_factory() as db:
        with pytest.raises(NotFound):
            await service.open_session(db, scheduler, 9999)
    assert scheduler.active_classes() == []


@pytest.mark.asyncio
async def test_restart_issues_different_code(session_factory, scheduler, school: School) -> None:
    class_id = school.school_class.id
    async with session_factory() as db:
        opened = await service.open_session(db, scheduler, class_id)
    async with session_factory() as db:
        restarted = await service.restart_session(db, scheduler, class_id)

    assert restarted.old_code == opened.code
    assert restarted.new_code != opened.code
    assert scheduler.is_running(class_id)

    async with session_factory() as db:
        row = await store.get_session(db, class_id)
    assert row.code == restarted.new_code


@pytest.mark.asyncio
async def test_restart_without_session(session_factory, scheduler, school: School) -> None:
    async with session_factory() as db:
        with pytest.raises(NotFound):
            await service.restart_session(db, scheduler, school.school_class.id)
    assert not scheduler.is_running(school.school_class.id)


@pytest.mark.asyncio
async def test_status_inactive_then_active(session_factory, scheduler, school: School) -> None:
    class_id = school.school_class.id
    async with session_factory() as db:
        status = await service.get_session_status(db, class_id, scheduler.interval_seconds)
    assert status.status == SessionState.INACTIVE
    assert status.session is None

    async with session_factory() as db:
        opened = await service.open_session(db, scheduler, class_id)
    async with session_factory() as db:
        status = await service.get_session_status(db, class_id, scheduler.interval_seconds)

    assert status.status == SessionState.ACTIVE
    assert status.session.code == opened.code
    assert status.session.class_name == "X-A Mathematics"
    assert status.session.today_attendance_count == 0


@pytest.mark.asyncio
async def test_close_session(session_factory, scheduler, school: School) -> None:
    class_id = school.school_class.id
    async with session_factory() as db:
        opened = await service.open_session(db, scheduler, class_id)
    async with session_factory() as db:
        closed = await service.close_session(db, scheduler, class_id)

    assert closed.last_code == opened.code
    assert closed.rows_removed == 1
    assert closed.rotation_stopped is True
    assert not scheduler.is_running(class_id)

    async with session_factory() as db:
        status = await service.get_session_status(db, class_id, scheduler.interval_seconds)
    assert status.status == SessionState.INACTIVE

    async with session_factory() as db:
        with pytest.raises(NotFound):
            await service.close_session(db, scheduler, class_id)


@pytest.mark.asyncio
async def test_session_endpoints_flow(client: AsyncClient, school: School) -> None:
    class_id = school.school_class.id
    headers = auth_headers(school.teacher)
    base = f"/api/v1/attendance-sessions/{class_id}"

    response = await client.get(f"{base}/status", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "inactive"

    response = await client.post(f"{base}/open", headers=headers)
    assert response.status_code == 200
    code = response.json()["code"]

    response = await client.get(f"{base}/status", headers=headers)
    body = response.json()
    assert body["status"] == "active"
    assert body["session"]["code"] == code

    response = await client.post(f"{base}/restart", headers=headers)
    assert response.status_code == 200
    assert response.json()["old_code"] == code
    assert response.json()["new_code"] != code

    response = await client.post(f"{base}/close", headers=headers)
    assert response.status_code == 200

    response = await client.post(f"{base}/close", headers=headers)
    assert response.status_code == 404
    assert response.json()["detail"]["kind"] == "not_found"


@pytest.mark.asyncio
async def test_open_unknown_class_endpoint(client: AsyncClient, school: School) -> None:
    response = await client.post(
        "/api/v1/attendance-sessions/9999/open",
        headers=auth_headers(school.teacher),
    )
    assert response.status_code == 404
    assert response.json()["detail"]["kind"] == "not_found"
