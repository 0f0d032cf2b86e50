import pytest
from pydantic import ValidationError as SchemaValidationError

from conftest import OTHER_USER_ID, USER_ID, client_data
from proforma_service import crud, schemas
from proforma_service.errors import AuthorizationError, ConflictError, NotFoundError


async def test_create_and_get(db):
    created = await crud.create_client(db, client_data(), USER_ID)

    found = await crud.get_client(db, created.id, USER_ID)
    assert found.full_name == "María Pérez"
    assert found.created_at is not None
    assert found.deleted_at is None


async def test_duplicate_cedula_conflicts(db, sample_client):
    with pytest.raises(ConflictError) as exc:
        await crud.create_client(db, client_data(first_name="Otra"), USER_ID)
    assert exc.value.message == crud.DUPLICATE_CEDULA_MSG


async def test_same_cedula_allowed_for_other_user(db, sample_client):
    other = await crud.create_client(db, client_data(), OTHER_USER_ID)
    assert other.cedula_ruc == sample_client.cedula_ruc


async def test_cedula_reusable_after_soft_delete(db, sample_client):
    await crud.delete_client(db, sample_client.id, USER_ID)
    again = await crud.create_client(db, client_data(), USER_ID)
    assert again.id != sample_client.id


async def test_update_client(db, sample_client):
    updated = await crud.update_client(
        db, sample_client.id, client_data(phone="072800000", email=""), USER_ID
    )
    assert updated.phone == "072800000"
    assert updated.email is None


async def test_update_to_existing_cedula_conflicts(db, sample_client):
    other = await crud.create_client(db, client_data(cedula_ruc="0102030405001"), USER_ID)
    with pytest.raises(ConflictError):
        await crud.update_client(db, other.id, client_data(), USER_ID)


async def test_update_keeping_own_cedula(db, sample_client):
    updated = await crud.update_client(db, sample_client.id, client_data(last_name="Ortiz"), USER_ID)
    assert updated.last_name == "Ortiz"


async def test_soft_delete_hides_client(db, sample_client):
    deleted = await crud.delete_client(db, sample_client.id, USER_ID)
    assert deleted.deleted_at is not None

    with pytest.raises(NotFoundError):
        await crud.get_client(db, sample_client.id, USER_ID)
    historical = await crud.get_client(db, sample_client.id, USER_ID, include_deleted=True)
    assert historical.id == sample_client.id

    listing = await crud.get_clients(db, USER_ID)
    assert listing["meta"]["total"] == 0

    # Borrar otra vez no es error
    again = await crud.delete_client(db, sample_client.id, USER_ID)
    assert again.deleted_at == deleted.deleted_at


async def test_other_user_is_rejected(db, sample_client):
    with pytest.raises(AuthorizationError):
        await crud.get_client(db, sample_client.id, OTHER_USER_ID)
    with pytest.raises(AuthorizationError):
        await crud.delete_client(db, sample_client.id, OTHER_USER_ID)


async def test_search_and_pagination(db):
    for i in range(12):
        await crud.create_client(
            db, client_data(first_name=f"Cliente{i}", cedula_ruc=f"01000000{i:02d}"), USER_ID
        )
    await crud.create_client(db, client_data(first_name="Rosa", last_name="Zhunio",
                                             cedula_ruc="0190000000001"), USER_ID)

    page_2 = await crud.get_clients(db, USER_ID, page=2)
    assert page_2["meta"] == {"total": 13, "page": 2, "limit": 10, "total_pages": 2}
    assert len(page_2["data"]) == 3

    by_name = await crud.get_clients(db, USER_ID, search="zhun")
    assert [c.first_name for c in by_name["data"]] == ["Rosa"]

    by_cedula = await crud.get_clients(db, USER_ID, search="0100000011")
    assert [c.first_name for c in by_cedula["data"]] == ["Cliente11"]


@pytest.mark.parametrize("overrides", [
    {"first_name": ""},
    {"last_name": ""},
    {"cedula_ruc": "12345"},
    {"cedula_ruc": "010203040A"},
    {"cedula_ruc": "01020304050"},
    {"cedula_ruc": "٠١٢٣٤٥٦٧٨٩"},
    {"cedula_ruc": "０１０２０３０４０５"},
    {"email": "no-es-correo"},
])
def test_client_schema_rejects(overrides):
    with pytest.raises(SchemaValidationError):
        client_data(**overrides)


def test_client_schema_accepts_ruc_and_blank_email():
    data = client_data(cedula_ruc="0102030405001", email="  ")
    assert data.email is None
    assert isinstance(data, schemas.ClientCreate)
