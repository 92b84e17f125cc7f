"""User profile schemas.

Profiles live in the Firestore ``users`` collection keyed by Firebase uid.
Documents use camelCase field names; the models expose snake_case attributes
and accept either form.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserProfileBase(BaseModel):
    """Fields a user declares about themselves."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    display_name: str | None = Field(None, alias="displayName")
    photo_url: str | None = Field(None, alias="photoURL")
    phone: str | None = Field(None, max_length=20)
    date_of_birth: str | None = Field(None, alias="dateOfBirth")
    gender: str | None = None
    address: str | None = Field(None, max_length=500)
    emergency_contact: str | None = Field(None, alias="emergencyContact")


class UserProfile(UserProfileBase):
    """Profile document as stored in Firestore."""

    uid: str = Field(..., description="Firebase user ID")
    email: str | None = None
    created_at: datetime | None = Field(None, alias="createdAt")
    updated_at: datetime | None = Field(None, alias="updatedAt")

    @classmethod
    def from_document(cls, uid: str, data: dict) -> "UserProfile":
        """Build a profile from a Firestore document's data."""
        return cls.model_validate({**data, "uid": uid})


class UserProfileUpdate(UserProfileBase):
    """Schema for updating a user profile. Only fields that are set are written."""

    def to_document(self) -> dict:
        """Return the Firestore field updates for the fields that were set."""
        return self.model_dump(by_alias=True, exclude_unset=True)
