from typing import Optional, Union
from pydantic import BaseModel


class TransferForm(BaseModel):
    award: str
    # Kept loose so a blank picker reaches the workflow and is reported as a notice
    student_id: Optional[Union[int, str]] = None
    idempotency_key: Optional[str] = None
