from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from todo_app.utils.dates import as_utc


class SubscriptionStatusResponse(BaseModel):
    is_subscribed: bool = Field(serialization_alias="isSubscribed")
    subscription_ends: Optional[datetime] = Field(default=None, serialization_alias="subscriptionEnds")

    @field_validator("subscription_ends")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    class Config:
        from_attributes = True
