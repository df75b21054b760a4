"""Persistencia dos equipamentos.

Erros do banco (``SQLAlchemyError``) sao tratados aqui: a sessao e revertida,
o erro e registrado no log e quem chamou recebe um valor seguro (lista vazia,
o equipamento sem alteracoes ou ``False``). Apenas ``transition_to`` levanta
excecao, e so para uma transicao de estado invalida.

Depois de cada remocao o contador de identidade da tabela e redefinido para
``max(id) + 1`` (ou 1 com a tabela vazia). A rotina e serializada por um lock
por tabela dentro do processo; entre processos diferentes continua sujeita a
corrida entre ler o maior ID e redefinir o contador. Para manter a sequencia
nativa sempre crescente, use ``EQUIPMENT_ID_REBASE=off``. Se o maior ID nao
puder ser lido com registros na tabela, o contador fica como esta.
"""
import logging
import threading
from datetime import date
from typing import Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import is_id_rebase_enabled
from app.core.lifecycle import (
    StateLike,
    is_valid_transition,
    normalize_state_text,
    parse_state,
)
from app.database.identity import read_next_identity, reset_identity
from app.models.equipment import EQUIPMENT_FIELDS, Equipment

logger = logging.getLogger("uvicorn.error")

DATE_DISPLAY_FORMAT = "%d/%m/%Y"
SEARCHABLE_FIELDS = (
    "state",
    "customer",
    "user",
    "category",
    "brand",
    "model",
    "serial_number",
    "processor",
    "memory_ram",
    "storage",
    "operating_system",
    "note",
    "responsible",
)
UPDATABLE_FIELDS = tuple(field for field in EQUIPMENT_FIELDS if field != "date_register")

_rebase_locks: dict[str, threading.Lock] = {}
_rebase_locks_guard = threading.Lock()


def _rebase_lock(table_name: str) -> threading.Lock:
    with _rebase_locks_guard:
        if table_name not in _rebase_locks:
            _rebase_locks[table_name] = threading.Lock()
        return _rebase_locks[table_name]


class InvalidStateTransition(ValueError):
    def __init__(self, current: StateLike, requested: StateLike):
        self.current = current
        self.requested = requested
        super().__init__(f"Transicao de estado invalida: {current} -> {requested}.")


def copy_equipment(source: Equipment, *, include_id: bool = True) -> Equipment:
    """Copia os valores para uma instancia nova, fora da sessao."""
    values = {field: getattr(source, field, None) for field in EQUIPMENT_FIELDS}
    if include_id:
        values["id"] = getattr(source, "id", None)
    return Equipment(**values)


def searchable_values(equipment) -> list[str]:
    values: list[str] = []
    equipment_id = getattr(equipment, "id", None)
    if equipment_id is not None:
        values.append(str(equipment_id))
    date_register = getattr(equipment, "date_register", None)
    if isinstance(date_register, date):
        values.append(date_register.strftime(DATE_DISPLAY_FORMAT))
    for field in SEARCHABLE_FIELDS:
        value = getattr(equipment, field, None)
        if value:
            values.append(str(value))
    return values


def matches_search(search_term: str, equipment) -> bool:
    needle = search_term.casefold()
    return any(needle in value.casefold() for value in searchable_values(equipment))


class EquipmentRepository:
    def __init__(self, db: Session, rebase_enabled: Optional[bool] = None):
        self.db = db
        self.rebase_enabled = is_id_rebase_enabled() if rebase_enabled is None else rebase_enabled

    def list_all(self) -> list[Equipment]:
        try:
            return self.db.query(Equipment).order_by(Equipment.id.asc()).all()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Erro ao listar os equipamentos.")
            return []

    def add(self, equipment: Equipment) -> Equipment:
        """Grava um equipamento novo; o ``id`` e sempre gerado pelo banco.

        Em caso de erro devolve a propria instancia recebida, sem ``id``.
        """
        row = copy_equipment(equipment, include_id=False)
        if row.date_register is None:
            row.date_register = date.today()
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Erro ao adicionar o equipamento (categoria: %s).", equipment.category)
            return equipment
        return row

    def find_by_id(self, equipment_id: int) -> Optional[Equipment]:
        try:
            row = self.db.query(Equipment).filter(Equipment.id == equipment_id).first()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Erro ao pesquisar o equipamento com ID %s.", equipment_id)
            return None
        if row is None:
            return None
        return copy_equipment(row)

    def update(self, equipment: Equipment) -> Equipment:
        """Substitui todos os campos do registro com o mesmo ``id``.

        ``id`` e ``date_register`` nunca mudam. Se o registro nao existir nada
        e gravado e a instancia recebida volta sem alteracoes.
        """
        try:
            row = self.db.get(Equipment, equipment.id) if equipment.id is not None else None
            if row is None:
                logger.warning(
                    "Equipamento com ID %s nao encontrado. Nenhuma alteracao foi gravada.",
                    equipment.id,
                )
                return equipment
            for field in UPDATABLE_FIELDS:
                setattr(row, field, getattr(equipment, field, None))
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(
                "Erro ao atualizar o equipamento %s (categoria: %s).",
                equipment.id,
                equipment.category,
            )
            return equipment
        return copy_equipment(row)

    def transition_to(self, equipment_id: int, new_state: StateLike) -> Optional[Equipment]:
        """Atualiza apenas o estado, respeitando as transicoes do ciclo de vida.

        Devolve ``None`` quando o equipamento nao existe ou a gravacao nao teve
        efeito; levanta ``InvalidStateTransition`` se a transicao nao e permitida.
        """
        current = self.find_by_id(equipment_id)
        if current is None:
            return None
        if not is_valid_transition(current.state, new_state):
            raise InvalidStateTransition(current.state, new_state)
        resolved = parse_state(new_state)
        current.state = resolved.value if resolved is not None else normalize_state_text(new_state)
        updated = self.update(current)
        if updated is current:
            return None
        return updated

    def remove(self, equipment_id: int) -> bool:
        try:
            row = self.db.get(Equipment, equipment_id)
            if row is None:
                return False
            self.db.delete(row)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Erro ao remover o equipamento com ID %s.", equipment_id)
            return False

        self.rebase_identity()
        return True

    @staticmethod
    def filter(search_term: Optional[str], records: Sequence[Equipment]) -> Sequence[Equipment]:
        term = str(search_term or "").strip()
        if not term:
            return records
        return [item for item in records if matches_search(term, item)]

    def rebase_identity(self) -> None:
        """Redefine o contador para que o proximo ``id`` seja ``max(id) + 1``.

        Falhas sao apenas registradas; a remocao que disparou a rotina ja foi
        gravada e continua valida.
        """
        if not self.rebase_enabled:
            return

        table_name = Equipment.__tablename__
        with _rebase_lock(table_name):
            try:
                has_records = self.db.query(Equipment.id).first() is not None
                if not has_records:
                    reset_identity(self.db, table_name, 0)
                    self.db.commit()
                    return

                max_id = self._max_id()
                if max_id is None:
                    logger.warning(
                        "Maior ID da tabela %s indisponivel. O contador nao foi redefinido.",
                        table_name,
                    )
                    return
                next_value = read_next_identity(self.db, table_name)
                if next_value == max_id + 1:
                    return

                reset_identity(self.db, table_name, max_id)
                self.db.commit()
            except Exception:
                self.db.rollback()
                logger.exception(
                    "Erro ao redefinir a coluna ID da tabela %s. MaxId: %s",
                    table_name,
                    self._max_id(),
                )

    def _max_id(self) -> Optional[int]:
        try:
            return int(self.db.query(func.max(Equipment.id)).scalar() or 0)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Erro ao obter o maior ID da tabela %s.", Equipment.__tablename__)
            return None


def build_equipment(values: dict, *, equipment_id: Optional[int] = None) -> Equipment:
    row = Equipment(**{field: values.get(field) for field in EQUIPMENT_FIELDS})
    row.id = equipment_id
    return row
