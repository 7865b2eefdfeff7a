from typing import Dict, List

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func, true
from sqlalchemy.orm import relationship

from models.base import Base


class Category(Base):
    """
    Catalog category node.
    - parent_id: parent node; null only for the tree root
    - path: "/"-joined ancestor ids ending with this node's id, e.g. "1/2/333"
    - level: number of ancestors (len(path segments) - 1)
    - position: ordinal among siblings
    - available_sort_by: ordered list of sort option codes
    """
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    parent_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=True, index=True)
    path = Column(String(255), nullable=False, server_default="", index=True)
    level = Column(Integer, nullable=False, server_default="0")
    position = Column(Integer, nullable=False, server_default="0")
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    include_in_menu = Column(Boolean, nullable=False, default=True, server_default=true())
    available_sort_by = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    attribute_values = relationship(
        "CategoryAttributeValue",
        back_populates="category",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CategoryAttributeValue.attribute_code",
        lazy="selectin",
    )

    @property
    def path_ids(self) -> List[int]:
        return [int(p) for p in (self.path or "").split("/") if p]

    def get_custom_attributes(self) -> Dict[str, str]:
        return {v.attribute_code: v.value for v in (self.attribute_values or [])}

    def get_custom_attribute(self, code: str):
        for value in self.attribute_values or []:
            if value.attribute_code == code:
                return value.value
        return None

    def set_custom_attribute(self, code: str, value) -> None:
        """
        Set, update or (with None) remove a custom attribute value.
        """
        for existing in list(self.attribute_values or []):
            if existing.attribute_code == code:
                if value is None:
                    self.attribute_values.remove(existing)
                else:
                    existing.value = value
                return
        if value is not None:
            self.attribute_values.append(CategoryAttributeValue(attribute_code=code, value=value))


class CategoryAttributeValue(Base):
    """
    One custom attribute value of a category, keyed by attribute_code.
    """
    __tablename__ = "category_attribute_values"
    __table_args__ = (UniqueConstraint("category_id", "attribute_code", name="uq_category_attribute_values_code"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)
    attribute_code = Column(String(64), nullable=False)
    value = Column(Text, nullable=True)

    category = relationship("Category", back_populates="attribute_values")
