# purchase_intake/schemas.py
from typing import List, Optional, Any, Dict
from pydantic import BaseModel, Field, ConfigDict


class LineItem(BaseModel):
    name: str
    quantity: str  # free-form, e.g. "1000kg"
    specification: Optional[str] = None


class PurchaseRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    position: str
    department: str
    site: str
    request_type: str = Field(alias="requestType")
    justification: str
    products: List[LineItem]

    def to_payload(self) -> Dict[str, Any]:
        """Wire form (camelCase keys, unset specification omitted)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class RelayRecord(PurchaseRequest):
    timestamp: str  # ISO-8601, UTC

    @classmethod
    def from_request(cls, request: PurchaseRequest, timestamp: str) -> "RelayRecord":
        return cls(**request.model_dump(), timestamp=timestamp)


class ConfirmationSnapshot(BaseModel):
    name: str = ""
    date: str = ""
    products: List[LineItem] = []


# Choices offered by the intake form; the server does not enforce membership
DEPARTMENTS = ["STT", "Mantenimiento", "Calidad", "Empaque", "Papelería", "Logística", "Sistemas"]
SITES = ["Punto de Venta", "Planta", "Chimila", "Concentrados", "Cartagena"]
REQUEST_TYPES = ["Orden de Compra", "Orden de Servicio"]
JUSTIFICATIONS = ["Compra Nueva", "Reposición", "Desabastecimiento"]


def form_options() -> Dict[str, List[str]]:
    return {
        "departments": list(DEPARTMENTS),
        "sites": list(SITES),
        "requestTypes": list(REQUEST_TYPES),
        "justifications": list(JUSTIFICATIONS),
    }


# Structured error codes carried in error response bodies
E_VALIDATION = "E_VALIDATION"
E_RECORDED_LOCALLY = "E_RECORDED_LOCALLY"
