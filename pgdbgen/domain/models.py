"""
Domain models for the synthetic loader.

One `Record` bundles the four rows that are committed together: an account,
a product, a payment and the buying stat linking the account to the product.
Column names match the schema in `pgdbgen.infrastructure.schema`.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Tuple, Union

from pydantic import BaseModel, Field

CENT = Decimal("0.01")

_FROZEN = {
    "frozen": True,
    "populate_by_name": True,
    "arbitrary_types_allowed": False,
}


def round2(value: Union[Decimal, float, int]) -> Decimal:
    """
    Round to two decimals, halves away from zero.

    Floats go through their shortest repr so 2.675 rounds to 2.68, not to the
    binary neighbour.
    """
    if isinstance(value, float):
        value = Decimal(repr(value))
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class Account(BaseModel):
    uuid: str = Field(..., alias="a_uuid", description="Primary key.")
    username: str = Field(..., alias="a_username")
    email: str = Field(..., alias="a_email")
    password: str = Field(..., alias="a_password")
    created_epoch: int = Field(..., alias="a_created_epoch")
    last_login_epoch: int = Field(..., alias="a_last_login_epoch")

    model_config = _FROZEN

    def params(self) -> Tuple[Any, ...]:
        return (
            self.uuid,
            self.username,
            self.email,
            self.password,
            self.created_epoch,
            self.last_login_epoch,
        )


class Product(BaseModel):
    uuid: str = Field(..., alias="pr_uuid", description="Primary key.")
    name: str = Field(..., alias="pr_name")
    authors: str = Field(..., alias="pr_authors", description="Comma-joined author names.")
    price: Decimal = Field(..., alias="pr_price", description="DECIMAL(10,2).")

    model_config = _FROZEN

    def params(self) -> Tuple[Any, ...]:
        return (self.uuid, self.name, self.authors, self.price)


class Payment(BaseModel):
    md5: str = Field(..., alias="p_md5", min_length=32, max_length=32)
    amount: Decimal = Field(..., alias="p_amount")
    epoch: int = Field(..., alias="p_epoch")

    model_config = _FROZEN

    def params(self) -> Tuple[Any, ...]:
        return (self.md5, self.amount, self.epoch)


class BuyingStat(BaseModel):
    account_uuid: str = Field(..., alias="bs_account_uuid")
    product_uuid: str = Field(..., alias="bs_product_uuid")
    quantity: int = Field(..., alias="bs_quantity", ge=1)
    total_amount: Decimal = Field(..., alias="bs_total_amount")
    epoch: int = Field(..., alias="bs_epoch")

    model_config = _FROZEN

    def params(self) -> Tuple[Any, ...]:
        return (
            self.account_uuid,
            self.product_uuid,
            self.quantity,
            self.total_amount,
            self.epoch,
        )


class Record(BaseModel):
    """
    The unit of work: four related rows committed all-or-nothing.

    Not persisted as such; the writer turns it into four inserts.
    """

    account: Account
    product: Product
    payment: Payment
    buying_stat: BuyingStat

    model_config = _FROZEN


__all__ = ["Account", "Product", "Payment", "BuyingStat", "Record", "round2", "CENT"]
