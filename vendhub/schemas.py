from datetime import date
from typing import Optional
from pydantic import BaseModel, Field, model_validator


class CanonicalTransaction(BaseModel):
    """
    Defines the data contract for one sales row after normalization.
    Vendor-specific column names are gone; the original row is kept in raw_row.
    """

    location_code: str = Field(..., alias="locationCode")
    product_name: str = Field(..., alias="productName")
    product_identifier: str = Field(..., alias="upc")
    sale_date: str = Field(..., alias="saleDate")
    unit_price: float = Field(..., ge=0, alias="unitPrice")
    total_amount: float = Field(..., ge=0, alias="totalAmount")
    raw_row: dict[str, str] = Field(default_factory=dict, alias="rawData")

    class Config:
        populate_by_name = True


class BatchResult(BaseModel):
    processed: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return self.processed + self.failed


class UploadResult(BaseModel):
    """What the upload boundary hands back to the HTTP/UI layer."""

    total: int
    processed: int
    failed: int
    errors: list[str] = Field(default_factory=list)
    import_id: str = Field(..., alias="importId")

    class Config:
        populate_by_name = True


class InventoryUpdate(BaseModel):
    """Manual edit of an inventory row's levels. Every field is optional."""

    current_stock: Optional[int] = Field(default=None, ge=0, alias="currentStock")
    min_stock: Optional[int] = Field(default=None, ge=0, alias="minStock")
    max_stock: Optional[int] = Field(default=None, ge=0, alias="maxStock")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def check_thresholds(self):
        if (
            self.min_stock is not None
            and self.max_stock is not None
            and self.min_stock > self.max_stock
        ):
            raise ValueError("Minimum stock cannot be greater than maximum stock")
        return self


class InventoryStatusItem(BaseModel):
    """
    One row of the inventory status report.
    The aliases are the column headers of the exported CSV.
    """

    inventory_id: str = Field(..., alias="Inventory ID")
    location_code: str = Field(..., alias="Location Code")
    location_name: str = Field(..., alias="Location")
    product_name: str = Field(..., alias="Product")
    upc: Optional[str] = Field(default=None, alias="UPC")
    category: Optional[str] = Field(default=None, alias="Category")
    current_stock: int = Field(default=0, ge=0, alias="Current Stock")
    min_stock: int = Field(default=0, ge=0, alias="Min Stock")
    max_stock: int = Field(default=0, ge=0, alias="Max Stock")
    stock_status: str = Field(..., alias="Stock Status")
    location_status: str = Field(..., alias="Location Status")
    report_date: date = Field(..., alias="Date")

    class Config:
        populate_by_name = True
