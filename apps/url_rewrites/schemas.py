from pydantic import BaseModel


class UrlRewriteResponse(BaseModel):
    id: int
    entity_type: str
    entity_id: int
    request_path: str
    target_path: str
    redirect_type: int
    store_id: int
    is_autogenerated: bool

    class Config:
        from_attributes = True
