from moment_client.schemas.base import ResponseSchema


class UserProfile(ResponseSchema):
    first_name: str | None = None
    last_name: str | None = None
    bio: str | None = None
    age: int | None = None
    profile_picture_url: str | None = None


class UserPreferences(ResponseSchema):
    age_min: int | None = None
    age_max: int | None = None
    max_distance: int | None = None


class UserRead(ResponseSchema):
    """Authenticated user as returned by the user/me endpoint"""

    id: int
    email: str
    phone: str
    is_active: bool
    is_admin: bool
    created_at: str
    profile: UserProfile | None = None
    preferences: UserPreferences | None = None
