"""
Local feed schemas: price feed records and inventory ledger entries.

Field names vary between feed versions, so each field accepts the
legacy ERP names (CodigoProducto, Venta1, ...) as well as plain ones.
Values stay raw here; parsing and validation happen in the services.
"""
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class LocalProductRecord(BaseModel):
    """One row of the local price feed."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    sku: Any = Field(None, validation_alias=AliasChoices("sku", "SKU", "CodigoProducto"))
    price: Any = Field(None, validation_alias=AliasChoices("price", "PRICE", "Venta1"))
    name: Optional[Any] = Field(None, validation_alias=AliasChoices("name", "NAME", "Descripcion"))


class LedgerEntry(BaseModel):
    """One timestamped snapshot from the local inventory ledger."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    sku: Any = Field(None, validation_alias=AliasChoices("sku", "SKU", "CodigoProducto"))
    timestamp: Any = Field(None, validation_alias=AliasChoices("timestamp", "Fecha", "date"))
    initial: Any = Field(None, validation_alias=AliasChoices("initial", "CantidadInicial"))
    received: Any = Field(None, validation_alias=AliasChoices("received", "CantidadEntradas"))
    shipped: Any = Field(None, validation_alias=AliasChoices("shipped", "CantidadSalidas"))
