# delivery_dispatch/models/api_common.py
# Error bodies shared by every endpoint
from typing import List, Union
from pydantic import BaseModel

class ErrorDetail(BaseModel):
    loc: List[Union[str, int]]
    msg: str
    type: str

class ErrorResponse(BaseModel):
    detail: Union[str, List[ErrorDetail]]
