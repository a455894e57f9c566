"""
Schemas Pydantic per Clienti e Dispositivi
Progetto: Repair Desk (Gestionale Laboratorio Riparazioni)
"""
# Definisce gli schemi di validazione e serializzazione per l'API.

import datetime
import re
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


# -------------------------------------------------------------------
# Funzioni di normalizzazione
# -------------------------------------------------------------------

def blank_to_none(value: Optional[str]) -> Optional[str]:
    """Strip del testo; stringa vuota → None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalizza il numero di telefono.

    Rimuove spazi, punti e trattini; accetta solo + iniziale e numeri.

    Raises:
        ValueError: Se il formato non è valido
    """
    phone = blank_to_none(phone)
    if phone is None:
        return None

    normalized = re.sub(r"[\s.\-]", "", phone)
    if not re.match(r"^\+?\d+$", normalized):
        raise ValueError("Numero di telefono non valido")

    return normalized


# -------------------------------------------------------------------
# Schemas Dispositivo
# -------------------------------------------------------------------

class DeviceBase(BaseModel):
    """
    Dati del dispositivo consegnato in laboratorio.

    Marca e modello sono obbligatori: il controllo sul valore vuoto
    avviene nel service, prima di qualsiasi scrittura.
    """
    brand: str = Field(default="", max_length=100, description="Marca")
    model: str = Field(default="", max_length=100, description="Modello")
    serial_number: Optional[str] = Field(None, max_length=100, description="Numero di serie / IMEI")
    condition: Optional[str] = Field(None, max_length=255, description="Condizioni all'accettazione")

    @field_validator("brand", "model", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("serial_number", "condition", mode="before")
    @classmethod
    def empty_as_none(cls, v):
        return blank_to_none(v) if isinstance(v, str) else v


class DeviceCreate(DeviceBase):
    pass


class DeviceRead(DeviceBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    customer_id: uuid.UUID
    created_at: datetime.datetime


# -------------------------------------------------------------------
# Schemas Cliente
# -------------------------------------------------------------------

class CustomerBase(BaseModel):
    """Dati anagrafici del cliente."""
    name: str = Field(default="", max_length=200, description="Nome e cognome o ragione sociale")
    email: Optional[EmailStr] = Field(None, description="Indirizzo email")
    phone: Optional[str] = Field(None, max_length=50, description="Telefono")
    address: Optional[str] = Field(None, description="Indirizzo")
    city: Optional[str] = Field(None, max_length=100, description="Città")
    postal_code: Optional[str] = Field(None, max_length=20, description="CAP")
    country: Optional[str] = Field(None, max_length=100, description="Nazione")

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", "address", "city", "postal_code", "country", mode="before")
    @classmethod
    def empty_as_none(cls, v):
        return blank_to_none(v) if isinstance(v, str) else v

    @field_validator("phone", mode="before")
    @classmethod
    def validate_phone(cls, v):
        return normalize_phone(v) if isinstance(v, str) else v


class CustomerCreate(CustomerBase):
    """Creazione cliente, con eventuali dispositivi già registrati."""
    devices: list[DeviceCreate] = Field(default_factory=list)


class CustomerRead(CustomerBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_at: datetime.datetime
    updated_at: datetime.datetime


class CustomerDetail(CustomerRead):
    """Cliente con i dispositivi registrati."""
    devices: list[DeviceRead] = Field(default_factory=list)


class CustomerList(BaseModel):
    items: list[CustomerRead]
    total: int
