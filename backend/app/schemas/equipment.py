from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class EquipmentBase(BaseModel):
    state: str = Field(min_length=1, max_length=20)
    customer: str = Field(min_length=1, max_length=50)
    user: Optional[str] = Field(default=None, max_length=50)
    category: str = Field(min_length=1, max_length=20)
    brand: str = Field(min_length=1, max_length=30)
    model: Optional[str] = Field(default=None, max_length=30)
    serial_number: Optional[str] = Field(default=None, max_length=20)
    processor: Optional[str] = Field(default=None, max_length=30)
    memory_ram: Optional[str] = Field(default=None, max_length=15)
    storage: Optional[str] = Field(default=None, max_length=15)
    operating_system: Optional[str] = Field(default=None, max_length=20)
    note: Optional[str] = Field(default=None, max_length=500)
    responsible: str = Field(min_length=1, max_length=30)


class EquipmentCreate(EquipmentBase):
    date_register: Optional[date] = None


class EquipmentUpdate(EquipmentBase):
    pass


class EquipmentStateChange(BaseModel):
    state: str = Field(min_length=1, max_length=20)


class EquipmentOut(EquipmentBase):
    id: int
    date_register: date
    progress: int = 0
    badge_class: str = ""
    next_states: list[str] = Field(default_factory=list)

    class Config:
        from_attributes = True


class WorkflowPhaseOut(BaseModel):
    state: str
    completed: bool
    active: bool


class EquipmentWorkflowOut(BaseModel):
    id: int
    state: str
    progress: int
    phases: list[WorkflowPhaseOut]


class LifecycleOut(BaseModel):
    states: list[str]
    progress_order: list[str]
    transitions: dict[str, list[str]]


class RegistrationOptionsOut(BaseModel):
    states: list[str]
    customers: list[str]
    categories: list[str]
    brands: list[str]
    responsibles: list[str]
