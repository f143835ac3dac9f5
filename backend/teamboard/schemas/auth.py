"""
Pydantic schemas for authentication endpoints.
"""
from pydantic import BaseModel

class RegisterIn(BaseModel):
    """
    Request model for account registration.
    Length rules are checked by the router so failures come back as 400s.
    """
    username: str = ""
    password: str = ""

class LoginRequest(BaseModel):
    """
    Request model for user login endpoint.
    """
    username: str = ""
    password: str = ""