import pytest
from fastapi import HTTPException

from app.routes.equipments import (
    change_equipment_state,
    create_equipment,
    delete_equipment,
    describe_lifecycle,
    get_equipment,
    get_equipment_workflow,
    list_equipments,
    list_registration_options,
    update_equipment,
)
from app.schemas.equipment import EquipmentCreate, EquipmentStateChange, EquipmentUpdate
from app.services.equipment_repository import EquipmentRepository


@pytest.fixture
def repository(db_session):
    return EquipmentRepository(db_session, rebase_enabled=True)


def create_payload(**overrides) -> dict:
    payload = {
        "state": "avariado",
        "customer": "  RuIIuR ",
        "category": "Portátil",
        "brand": "Lenovo",
        "model": "ThinkPad T14",
        "serial_number": "PF3XK9",
        "note": "   ",
        "responsible": "Daniel Marques",
    }
    payload.update(overrides)
    return payload


def test_create_normalizes_payload_and_adds_lifecycle_data(repository):
    created = create_equipment(payload=EquipmentCreate(**create_payload()), repository=repository)

    assert created.id == 1
    assert created.state == "AVARIADO"
    assert created.customer == "RuIIuR"
    assert created.note is None
    assert created.progress == 25
    assert created.badge_class == "bg-danger text-white"
    assert created.next_states == ["EM REPARAÇÃO", "AGUARDANDO PEÇA"]


def test_note_keeps_line_breaks_on_create_and_update(repository):
    note = "linha 1\nlinha 2\n\n  recuado"
    created = create_equipment(
        payload=EquipmentCreate(**create_payload(note=f"  {note}  ")),
        repository=repository,
    )
    assert created.note == note
    assert get_equipment(equipment_id=created.id, repository=repository).note == note

    updated = update_equipment(
        equipment_id=created.id,
        payload=EquipmentUpdate(**create_payload(note="troca de ecra\nteste ok")),
        repository=repository,
    )
    assert updated.note == "troca de ecra\nteste ok"
    assert updated.customer == "RuIIuR"


def test_create_rejects_unknown_state(repository):
    with pytest.raises(HTTPException) as exc_info:
        create_equipment(payload=EquipmentCreate(**create_payload(state="PERDIDO")), repository=repository)
    assert exc_info.value.status_code == 422


def test_create_rejects_blank_required_field(repository):
    with pytest.raises(HTTPException) as exc_info:
        create_equipment(payload=EquipmentCreate(**create_payload(brand="   ")), repository=repository)
    assert exc_info.value.status_code == 422
    assert exc_info.value.detail == "Marca e obrigatoria."


def test_list_filters_by_search_term(repository):
    create_equipment(payload=EquipmentCreate(**create_payload()), repository=repository)
    create_equipment(
        payload=EquipmentCreate(**create_payload(customer="AFG", serial_number="ZZ9")),
        repository=repository,
    )

    assert len(list_equipments(q=None, repository=repository)) == 2
    assert [item.customer for item in list_equipments(q="ruiiur", repository=repository)] == ["RuIIuR"]
    assert [item.serial_number for item in list_equipments(q="zz9", repository=repository)] == ["ZZ9"]


def test_get_missing_equipment_returns_404(repository):
    with pytest.raises(HTTPException) as exc_info:
        get_equipment(equipment_id=9, repository=repository)
    assert exc_info.value.status_code == 404


def test_update_is_a_raw_override(repository):
    created = create_equipment(payload=EquipmentCreate(**create_payload()), repository=repository)

    updated = update_equipment(
        equipment_id=created.id,
        payload=EquipmentUpdate(**create_payload(state="ENTREGUE AO CLIENTE", customer="Facal")),
        repository=repository,
    )

    assert updated.state == "ENTREGUE AO CLIENTE"
    assert updated.customer == "Facal"
    assert updated.date_register == created.date_register
    assert updated.progress == 100


def test_update_missing_equipment_returns_404(repository):
    with pytest.raises(HTTPException) as exc_info:
        update_equipment(equipment_id=3, payload=EquipmentUpdate(**create_payload()), repository=repository)
    assert exc_info.value.status_code == 404


def test_state_change_enforces_transitions(repository):
    created = create_equipment(payload=EquipmentCreate(**create_payload()), repository=repository)

    with pytest.raises(HTTPException) as exc_info:
        change_equipment_state(
            equipment_id=created.id,
            payload=EquipmentStateChange(state="REPARADO"),
            repository=repository,
        )
    assert exc_info.value.status_code == 409

    updated = change_equipment_state(
        equipment_id=created.id,
        payload=EquipmentStateChange(state="aguardando peça"),
        repository=repository,
    )
    assert updated.state == "AGUARDANDO PEÇA"
    assert updated.progress == 50


def test_state_change_of_missing_equipment_returns_404(repository):
    with pytest.raises(HTTPException) as exc_info:
        change_equipment_state(
            equipment_id=5,
            payload=EquipmentStateChange(state="REPARADO"),
            repository=repository,
        )
    assert exc_info.value.status_code == 404


def test_workflow_marks_completed_and_active_phases(repository):
    created = create_equipment(payload=EquipmentCreate(**create_payload(state="REPARADO")), repository=repository)

    workflow = get_equipment_workflow(equipment_id=created.id, repository=repository)

    assert workflow.progress == 75
    assert [phase.completed for phase in workflow.phases] == [True, True, False, False]
    assert [phase.active for phase in workflow.phases] == [False, False, True, False]


def test_delete_then_create_reuses_id(repository):
    first = create_equipment(payload=EquipmentCreate(**create_payload()), repository=repository)
    second = create_equipment(payload=EquipmentCreate(**create_payload()), repository=repository)

    assert delete_equipment(equipment_id=second.id, repository=repository) is None
    third = create_equipment(payload=EquipmentCreate(**create_payload()), repository=repository)

    assert first.id == 1
    assert third.id == second.id == 2


def test_delete_missing_equipment_returns_404(repository):
    with pytest.raises(HTTPException) as exc_info:
        delete_equipment(equipment_id=77, repository=repository)
    assert exc_info.value.status_code == 404


def test_lifecycle_and_options_endpoints():
    lifecycle = describe_lifecycle()
    assert lifecycle.progress_order == ["AVARIADO", "EM REPARAÇÃO", "REPARADO", "ENTREGUE AO CLIENTE"]
    assert lifecycle.transitions["ENTREGUE AO CLIENTE"] == ["AVARIADO"]
    assert lifecycle.transitions["EM REPARAÇÃO"] == ["AVARIADO", "AGUARDANDO PEÇA", "REPARADO"]

    options = list_registration_options()
    assert "RuIIuR" in options.customers
    assert options.states == lifecycle.states
