from pydantic import BaseModel


class ClassroomForm(BaseModel):
    name: str


class EnrolmentForm(BaseModel):
    student_id: int
