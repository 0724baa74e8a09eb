from typing import Optional
from datetime import datetime
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Listing entries handed to anonymous share visitors. Owner ids, storage keys
# and parent ids stay private.

class SharedFolder(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    name: str = Field(validation_alias=AliasChoices("file_name", "name"))
    created_at: Optional[datetime] = None


class SharedFile(SharedFolder):
    size: int = Field(0, validation_alias=AliasChoices("file_size", "size"))
    mime_type: Optional[str] = None
