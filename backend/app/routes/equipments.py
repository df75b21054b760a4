import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.lifecycle import (
    PROGRESS_ORDER,
    STATE_TRANSITIONS,
    EquipmentState,
    build_workflow_phases,
    get_progress_percentage,
    get_state_badge_class,
    get_valid_next_states,
    parse_state,
)
from app.core.registration_options import registration_options
from app.database.deps import get_db
from app.models.equipment import Equipment
from app.schemas.equipment import (
    EquipmentCreate,
    EquipmentOut,
    EquipmentStateChange,
    EquipmentUpdate,
    EquipmentWorkflowOut,
    LifecycleOut,
    RegistrationOptionsOut,
)
from app.services.equipment_repository import (
    EquipmentRepository,
    InvalidStateTransition,
    build_equipment,
)

router = APIRouter(prefix="/equipments", tags=["Equipments"])

REQUIRED_TEXT_FIELDS = {
    "customer": "Cliente e obrigatorio.",
    "category": "Categoria e obrigatoria.",
    "brand": "Marca e obrigatoria.",
    "responsible": "Responsavel e obrigatorio.",
}


def get_equipment_repository(db: Session = Depends(get_db)) -> EquipmentRepository:
    return EquipmentRepository(db)


def normalize_spaces(value: str) -> str:
    return re.sub(r"\s+", " ", str(value or "").strip())


def normalize_optional_text(value: Optional[str]) -> Optional[str]:
    text = normalize_spaces(value or "")
    return text or None


def normalize_note(value: Optional[str]) -> Optional[str]:
    text = str(value or "").strip()
    return text or None


def normalize_state(value: str) -> str:
    state = parse_state(value)
    if state is None:
        raise HTTPException(status_code=422, detail="Estado inválido.")
    return state.value


def sorted_states(states) -> list[str]:
    return [state.value for state in EquipmentState if state in states]


def build_equipment_out(item: Equipment) -> EquipmentOut:
    return EquipmentOut(
        id=item.id,
        date_register=item.date_register,
        state=item.state,
        customer=item.customer,
        user=item.user,
        category=item.category,
        brand=item.brand,
        model=item.model,
        serial_number=item.serial_number,
        processor=item.processor,
        memory_ram=item.memory_ram,
        storage=item.storage,
        operating_system=item.operating_system,
        note=item.note,
        responsible=item.responsible,
        progress=get_progress_percentage(item.state),
        badge_class=get_state_badge_class(item.state),
        next_states=sorted_states(get_valid_next_states(item.state)),
    )


def payload_values(payload) -> dict:
    if hasattr(payload, "model_dump"):
        data = payload.model_dump()
    else:
        data = payload.dict()

    values = {key: normalize_optional_text(value) if isinstance(value, str) else value for key, value in data.items()}
    # Observacao e texto livre: preserva quebras de linha e espacos internos.
    values["note"] = normalize_note(data.get("note"))
    values["state"] = normalize_state(data.get("state"))
    for field, message in REQUIRED_TEXT_FIELDS.items():
        if not values.get(field):
            raise HTTPException(status_code=422, detail=message)
    return values


@router.get("/", response_model=list[EquipmentOut])
def list_equipments(
    q: Optional[str] = Query(default=None),
    repository: EquipmentRepository = Depends(get_equipment_repository),
):
    rows = repository.filter(q, repository.list_all())
    return [build_equipment_out(row) for row in rows]


@router.get("/options", response_model=RegistrationOptionsOut)
def list_registration_options():
    return RegistrationOptionsOut(**registration_options())


@router.get("/lifecycle", response_model=LifecycleOut)
def describe_lifecycle():
    return LifecycleOut(
        states=[state.value for state in EquipmentState],
        progress_order=[state.value for state in PROGRESS_ORDER],
        transitions={
            state.value: sorted_states(targets)
            for state, targets in STATE_TRANSITIONS.items()
        },
    )


@router.get("/{equipment_id}", response_model=EquipmentOut)
def get_equipment(
    equipment_id: int,
    repository: EquipmentRepository = Depends(get_equipment_repository),
):
    row = repository.find_by_id(equipment_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Equipamento nao encontrado.")
    return build_equipment_out(row)


@router.get("/{equipment_id}/workflow", response_model=EquipmentWorkflowOut)
def get_equipment_workflow(
    equipment_id: int,
    repository: EquipmentRepository = Depends(get_equipment_repository),
):
    row = repository.find_by_id(equipment_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Equipamento nao encontrado.")
    return EquipmentWorkflowOut(
        id=row.id,
        state=row.state,
        progress=get_progress_percentage(row.state),
        phases=build_workflow_phases(row.state),
    )


@router.post("/", response_model=EquipmentOut, status_code=status.HTTP_201_CREATED)
def create_equipment(
    payload: EquipmentCreate,
    repository: EquipmentRepository = Depends(get_equipment_repository),
):
    row = repository.add(build_equipment(payload_values(payload)))
    if row.id is None:
        raise HTTPException(status_code=503, detail="Nao foi possivel registar o equipamento.")
    return build_equipment_out(row)


@router.put("/{equipment_id}", response_model=EquipmentOut)
def update_equipment(
    equipment_id: int,
    payload: EquipmentUpdate,
    repository: EquipmentRepository = Depends(get_equipment_repository),
):
    current = repository.find_by_id(equipment_id)
    if current is None:
        raise HTTPException(status_code=404, detail="Equipamento nao encontrado.")

    values = payload_values(payload)
    values["date_register"] = current.date_register
    candidate = build_equipment(values, equipment_id=equipment_id)
    row = repository.update(candidate)
    if row is candidate:
        raise HTTPException(status_code=503, detail="Nao foi possivel atualizar o equipamento.")
    return build_equipment_out(row)


@router.post("/{equipment_id}/state", response_model=EquipmentOut)
def change_equipment_state(
    equipment_id: int,
    payload: EquipmentStateChange,
    repository: EquipmentRepository = Depends(get_equipment_repository),
):
    new_state = normalize_state(payload.state)
    if repository.find_by_id(equipment_id) is None:
        raise HTTPException(status_code=404, detail="Equipamento nao encontrado.")
    try:
        row = repository.transition_to(equipment_id, new_state)
    except InvalidStateTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if row is None:
        raise HTTPException(status_code=503, detail="Nao foi possivel atualizar o estado do equipamento.")
    return build_equipment_out(row)


@router.delete("/{equipment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_equipment(
    equipment_id: int,
    repository: EquipmentRepository = Depends(get_equipment_repository),
):
    if repository.find_by_id(equipment_id) is None:
        raise HTTPException(status_code=404, detail="Equipamento não encontrado.")
    if not repository.remove(equipment_id):
        raise HTTPException(status_code=503, detail="Nao foi possivel remover o equipamento.")
    return None
