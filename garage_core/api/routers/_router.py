"""
Shared router object of all endpoints of the API
"""

from fastapi import APIRouter


router = APIRouter()
