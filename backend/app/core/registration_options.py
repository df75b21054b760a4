from app.core.lifecycle import EquipmentState

STATE_OPTIONS = tuple(state.value for state in EquipmentState)
CUSTOMER_OPTIONS = (
    "RuIIuR",
    "AFG",
    "ContruMadeira",
    "Acail",
    "Facal",
    "EcoFiltra",
    "JMM",
    "Curvar",
)
CATEGORY_OPTIONS = (
    "Torre",
    "Portátil",
    "Monitor",
    "Impressora",
    "Servidor",
    "Router",
    "Switch",
    "Tablet",
    "Smartphone",
    "NAS",
    "PDA",
)
BRAND_OPTIONS = (
    "Lenovo",
    "Dell",
    "HP",
    "Samsung",
    "Toshiba",
)
RESPONSIBLE_OPTIONS = (
    "Daniel Marques",
    "Rúben Marques",
    "Miguel Lemos",
)


def registration_options() -> dict[str, list[str]]:
    return {
        "states": list(STATE_OPTIONS),
        "customers": list(CUSTOMER_OPTIONS),
        "categories": list(CATEGORY_OPTIONS),
        "brands": list(BRAND_OPTIONS),
        "responsibles": list(RESPONSIBLE_OPTIONS),
    }
