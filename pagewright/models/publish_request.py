from pydantic import BaseModel, Field


class SetLatestPublishRequest(BaseModel):
    publish_id: str = Field(min_length=1, description="Id of a live publish record of this project.")
