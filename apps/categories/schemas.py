from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional, Union
from pydantic import BaseModel, constr

SortByOption = Literal["position", "name", "price"]


class CustomAttribute(BaseModel):
    attribute_code: constr(strip_whitespace=True, min_length=1, max_length=64)
    value: Optional[Union[bool, int, float, str]] = None

    def stored_value(self) -> Optional[str]:
        """
        Attribute values are stored as text; booleans use "1"/"0".
        """
        if self.value is None:
            return None
        if isinstance(self.value, bool):
            return "1" if self.value else "0"
        return str(self.value)


class CategoryPayload(BaseModel):
    """
    Category data accepted on create and update.

    Read-only fields (path, level, children, timestamps) are accepted so
    clients can send back a category they fetched; they are ignored.
    """
    id: Optional[int] = None
    parent_id: Optional[int] = None
    name: Optional[constr(strip_whitespace=True, min_length=1, max_length=255)] = None
    is_active: Optional[bool] = None
    include_in_menu: Optional[bool] = None
    position: Optional[int] = None
    available_sort_by: Optional[List[SortByOption]] = None
    custom_attributes: Optional[List[CustomAttribute]] = None
    path: Optional[str] = None
    level: Optional[int] = None
    children: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def attribute_map(self) -> Dict[str, Optional[str]]:
        """
        custom_attributes as code -> stored value; later duplicates win.
        """
        return {a.attribute_code: a.stored_value() for a in (self.custom_attributes or [])}


class CategoryCreateRequest(BaseModel):
    category: CategoryPayload


class CategoryUpdateRequest(BaseModel):
    id: Optional[int] = None
    category: CategoryPayload


class CustomAttributeOut(BaseModel):
    attribute_code: str
    value: Optional[str]


class CategoryResponse(BaseModel):
    id: int
    parent_id: Optional[int]
    name: str
    is_active: bool
    position: int
    level: int
    children: str
    created_at: datetime
    updated_at: datetime
    path: str
    available_sort_by: List[str]
    include_in_menu: bool
    custom_attributes: List[CustomAttributeOut]
