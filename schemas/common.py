from enum import Enum

# ------------------------------- Base Models ------------------------------- #

class ApiStatus(str, Enum):
    """Standard result statuses"""
    SUCCESS = "success"
    ERROR = "error"
