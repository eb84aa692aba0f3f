# sessapi/schemas/user.py
from pydantic import BaseModel, ConfigDict


class UserRead(BaseModel):
    # 對外只露出 id / email，密碼雜湊永遠不離開 store
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str


class UserEnvelope(BaseModel):
    user: UserRead
