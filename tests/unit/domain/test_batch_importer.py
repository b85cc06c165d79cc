import pytest
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from time2meet.domain.batch import crud, importer
from time2meet.domain.batch.schemas import ImportEventItemDTO, ImportTicketItemDTO, ImportUserItemDTO
from time2meet.domain.exceptions import BatchAborted, Conflict, Internal
from tests.helper import compile_pg, executed_sql, failing_on


SAVEPOINT = "SAVEPOINT batch_row"
ROLLBACK_TO = "ROLLBACK TO SAVEPOINT batch_row"
RELEASE = "RELEASE SAVEPOINT batch_row"


def _duplicate():
    return IntegrityError(
        "INSERT INTO users (email) VALUES ($1)",
        {"email": "a@example.com"},
        Exception("duplicate key value violates unique constraint \"users_email_key\"")
    )


def _row_inserter(mocker, *outcomes):
    return mocker.AsyncMock(side_effect=list(outcomes))


@pytest.mark.asyncio
async def test_import_rows_continue_on_error_isolates_failing_row(db, mocker):
    insert_row = _row_inserter(mocker, None, _duplicate(), None)

    result = await importer.import_rows(db, ["a", "b", "c"], insert_row, kind="users", continue_on_error=True)

    assert (result.total, result.success, result.failed) == (3, 2, 1)
    assert [err.index for err in result.errors] == [1]
    assert "duplicate key value" in result.errors[0].error


@pytest.mark.asyncio
async def test_import_rows_releases_every_savepoint_including_failed_rows(db, mocker):
    insert_row = _row_inserter(mocker, None, _duplicate(), None)

    await importer.import_rows(db, ["a", "b", "c"], insert_row, kind="users", continue_on_error=True)

    assert executed_sql(db) == [
        SAVEPOINT, RELEASE,
        SAVEPOINT, ROLLBACK_TO, RELEASE,
        SAVEPOINT, RELEASE,
    ]


@pytest.mark.asyncio
async def test_import_rows_many_failures_never_nest_savepoints(db, mocker):
    insert_row = mocker.AsyncMock(side_effect=_duplicate())

    result = await importer.import_rows(db, list(range(100)), insert_row, kind="users", continue_on_error=True)

    sql = executed_sql(db)
    assert result.failed == 100
    assert sql.count(SAVEPOINT) == sql.count(RELEASE) == 100
    depth = 0
    for stmt in sql:
        depth += {SAVEPOINT: 1, RELEASE: -1}.get(stmt, 0)
        assert depth <= 1


@pytest.mark.asyncio
async def test_import_rows_without_continue_aborts_on_first_failure(db, mocker):
    insert_row = _row_inserter(mocker, None, _duplicate(), None)

    with pytest.raises(BatchAborted) as e:
        await importer.import_rows(db, ["a", "b", "c"], insert_row, kind="users", continue_on_error=False)

    assert isinstance(e.value, Conflict)
    assert e.value.message == "batch import users failed"
    assert e.value.ctx["index"] == 1
    assert (e.value.result.total, e.value.result.success, e.value.result.failed) == (3, 1, 1)
    assert insert_row.await_count == 2
    assert executed_sql(db)[-2:] == [ROLLBACK_TO, RELEASE]


@pytest.mark.asyncio
async def test_import_rows_empty_batch(db, mocker):
    result = await importer.import_rows(db, [], mocker.AsyncMock(), kind="users", continue_on_error=False)

    assert (result.total, result.success, result.failed, result.errors) == (0, 0, 0, [])
    db.execute.assert_not_awaited()


@pytest.mark.parametrize(
    "failing_sql, row_fails, message",
    [
        (SAVEPOINT, False, "savepoint failed"),
        (ROLLBACK_TO, True, "rollback to savepoint failed"),
        (RELEASE, True, "release savepoint failed"),
        (RELEASE, False, "release savepoint failed"),
    ]
)
@pytest.mark.asyncio
async def test_import_rows_savepoint_statement_failure_raises_internal(db, mocker, failing_sql, row_fails, message):
    db.execute.side_effect = failing_on(failing_sql, OperationalError(failing_sql, {}, Exception("connection lost")))
    insert_row = _row_inserter(mocker, _duplicate() if row_fails else None)

    with pytest.raises(Internal) as e:
        await importer.import_rows(db, ["a"], insert_row, kind="users", continue_on_error=True)

    assert e.value.message == message
    assert e.value.ctx == {"kind": "users", "index": 0}


def test_row_error_message_keeps_driver_message_only():
    message = importer.row_error_message(_duplicate())

    assert message == "duplicate key value violates unique constraint \"users_email_key\""
    assert "INSERT INTO" not in message


def test_row_error_message_plain_error_first_line():
    assert importer.row_error_message(SQLAlchemyError("boom\n[SQL: SELECT 1]")) == "boom"


@pytest.mark.parametrize(
    "name, inserter",
    [
        ("import_users", "insert_user_row"),
        ("import_events", "insert_event_row"),
        ("import_tickets", "insert_ticket_row"),
    ]
)
@pytest.mark.asyncio
async def test_import_flavors_use_their_row_inserter(db, mocker, name, inserter):
    insert_row = mocker.patch(f"time2meet.domain.batch.importer.crud.{inserter}", new=mocker.AsyncMock())
    items = [mocker.Mock(), mocker.Mock()]

    result = await getattr(importer, name)(db, items, continue_on_error=False)

    assert result.success == 2
    assert [c.args for c in insert_row.await_args_list] == [(db, items[0]), (db, items[1])]


@pytest.mark.asyncio
async def test_insert_user_row_stores_empty_phone_as_null(db):
    item = ImportUserItemDTO(email="a@example.com", password_hash="h", full_name="A", phone="", role="attendee")

    await crud.insert_user_row(db, item)

    params = compile_pg(db.execute.await_args.args[0]).params
    assert params["phone"] is None
    assert params["role"] == "attendee"


@pytest.mark.asyncio
async def test_insert_event_row_stores_empty_text_as_null(db):
    item = ImportEventItemDTO(organizer_id=uuid4(), title="Meetup", description="", status="draft", cover_image="")

    await crud.insert_event_row(db, item)

    params = compile_pg(db.execute.await_args.args[0]).params
    assert params["description"] is None
    assert params["cover_image"] is None
    assert params["is_public"] is False


@pytest.mark.asyncio
async def test_insert_ticket_row_without_purchase_date_uses_db_now(db):
    item = ImportTicketItemDTO(ticket_type_id=uuid4(), buyer_id=uuid4(), status="paid", qr_code="QR-1",
                               amount_paid=Decimal("10.00"))

    await crud.insert_ticket_row(db, item)

    assert "now()" in str(compile_pg(db.execute.await_args.args[0]))


@pytest.mark.asyncio
async def test_insert_ticket_row_keeps_given_purchase_date(db):
    purchased = datetime(2026, 1, 2, 3, 4, tzinfo=timezone.utc)
    item = ImportTicketItemDTO(ticket_type_id=uuid4(), buyer_id=uuid4(), purchase_date=purchased, status="used",
                               qr_code="QR-1", amount_paid=Decimal("10.00"))

    await crud.insert_ticket_row(db, item)

    params = compile_pg(db.execute.await_args.args[0]).params
    assert params["purchase_date"] == purchased
    assert params["status"] == "used"
