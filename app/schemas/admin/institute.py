from typing import Literal

from app.schemas.shares.base import CamelModel


class InstituteApproval(CamelModel):
    status: Literal["approved", "rejected"]
