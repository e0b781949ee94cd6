from pydantic import BaseModel


class AttendanceUpdateForm(BaseModel):
    status: str
