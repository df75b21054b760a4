"""Ciclo de vida dos equipamentos no fluxo de reparacao.

Regras puras, sem I/O: transicoes validas entre estados, percentual de
progresso e consultas de fase para a tela de acompanhamento. Todas as funcoes
aceitam o estado como texto livre (com espacos ou em minusculas) ou como
``EquipmentState`` e nunca levantam excecao para entradas invalidas.
"""
from enum import Enum
from types import MappingProxyType
from typing import Optional, Union


class EquipmentState(str, Enum):
    AVARIADO = "AVARIADO"
    EM_REPARACAO = "EM REPARAÇÃO"
    AGUARDANDO_PECA = "AGUARDANDO PEÇA"
    REPARADO = "REPARADO"
    ENTREGUE_AO_CLIENTE = "ENTREGUE AO CLIENTE"


StateLike = Union[EquipmentState, str, None]

_STATES_BY_VALUE = MappingProxyType({state.value: state for state in EquipmentState})

STATE_TRANSITIONS = MappingProxyType({
    EquipmentState.AVARIADO: frozenset({
        EquipmentState.EM_REPARACAO,
        EquipmentState.AGUARDANDO_PECA,
    }),
    EquipmentState.EM_REPARACAO: frozenset({
        EquipmentState.REPARADO,
        EquipmentState.AGUARDANDO_PECA,
        EquipmentState.AVARIADO,
    }),
    EquipmentState.AGUARDANDO_PECA: frozenset({
        EquipmentState.EM_REPARACAO,
        EquipmentState.AVARIADO,
    }),
    EquipmentState.REPARADO: frozenset({
        EquipmentState.ENTREGUE_AO_CLIENTE,
        EquipmentState.EM_REPARACAO,
    }),
    # Permite reabrir caso necessario.
    EquipmentState.ENTREGUE_AO_CLIENTE: frozenset({
        EquipmentState.AVARIADO,
    }),
})

PROGRESS_ORDER = (
    EquipmentState.AVARIADO,
    EquipmentState.EM_REPARACAO,
    EquipmentState.REPARADO,
    EquipmentState.ENTREGUE_AO_CLIENTE,
)

# Estados que nao avancam o fluxo e ocupam a fase de outro estado.
PHASE_ALIASES = MappingProxyType({
    EquipmentState.AGUARDANDO_PECA: EquipmentState.EM_REPARACAO,
})

DEFAULT_BADGE_CLASS = "bg-secondary text-white"
STATE_BADGE_CLASSES = MappingProxyType({
    EquipmentState.AVARIADO: "bg-danger text-white",
    EquipmentState.EM_REPARACAO: "bg-warning text-dark",
    EquipmentState.AGUARDANDO_PECA: "bg-info text-white",
    EquipmentState.REPARADO: "bg-success text-white",
    EquipmentState.ENTREGUE_AO_CLIENTE: "bg-primary text-white",
})


def parse_state(value: StateLike) -> Optional[EquipmentState]:
    """Normaliza o texto do estado (trim + maiusculas) e devolve o membro do enum.

    Devolve ``None`` para vazio, desconhecido ou qualquer valor que nao seja texto.
    """
    if isinstance(value, EquipmentState):
        return value
    if not isinstance(value, str):
        return None
    normalized = value.strip().upper()
    if not normalized:
        return None
    return _STATES_BY_VALUE.get(normalized)


def normalize_state_text(value: StateLike) -> str:
    """Texto do estado com trim e em maiusculas, mesmo fora do enum."""
    if not isinstance(value, str):
        return ""
    return value.strip().upper()


def is_valid_transition(current: StateLike, new: StateLike) -> bool:
    current_text = normalize_state_text(current)
    new_text = normalize_state_text(new)
    if not current_text or not new_text:
        return False
    # Manter o estado atual e sempre permitido, inclusive valores legados.
    if current_text == new_text:
        return True
    current_state = parse_state(current)
    new_state = parse_state(new)
    if current_state is None or new_state is None:
        return False
    return new_state in STATE_TRANSITIONS[current_state]


def get_valid_next_states(current: StateLike) -> frozenset:
    current_state = parse_state(current)
    if current_state is None:
        return frozenset()
    return STATE_TRANSITIONS[current_state]


def get_phase_index(state: StateLike) -> int:
    resolved = parse_state(state)
    if resolved is None:
        return -1
    resolved = PHASE_ALIASES.get(resolved, resolved)
    return PROGRESS_ORDER.index(resolved)


def get_progress_percentage(state: StateLike) -> int:
    """Percentual da fase atual; ``AGUARDANDO PEÇA`` conta como ``EM REPARAÇÃO``."""
    index = get_phase_index(state)
    if index == -1:
        return 0
    return int(round((index + 1) / len(PROGRESS_ORDER) * 100))


def is_phase_completed(current: StateLike, phase: StateLike) -> bool:
    """Fase ja ultrapassada pelo estado atual (indice estritamente menor)."""
    current_index = get_phase_index(current)
    phase_index = get_phase_index(phase)
    if current_index == -1 or phase_index == -1:
        return False
    return current_index > phase_index


def is_phase_active(current: StateLike, phase: StateLike) -> bool:
    current_text = normalize_state_text(current)
    phase_text = normalize_state_text(phase)
    if not current_text or not phase_text:
        return False
    if current_text == phase_text:
        return True
    current_state = parse_state(current)
    if current_state is None:
        return False
    return PHASE_ALIASES.get(current_state) == parse_state(phase)


def get_state_badge_class(state: StateLike) -> str:
    resolved = parse_state(state)
    if resolved is None:
        return DEFAULT_BADGE_CLASS
    return STATE_BADGE_CLASSES[resolved]


def build_workflow_phases(current: StateLike) -> list[dict]:
    return [
        {
            "state": phase.value,
            "completed": is_phase_completed(current, phase),
            "active": is_phase_active(current, phase),
        }
        for phase in PROGRESS_ORDER
    ]
