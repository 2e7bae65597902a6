from enum import Enum

class Role(str, Enum):
    USER = "User"
    ADMIN = "Admin"

class MediaType(str, Enum):
    MOVIE = "MV"
    SERIES = "SR"

class LoginMethod(str, Enum):
    PASSWORD = "password"
    GOOGLE = "google"
