from sqlalchemy import Boolean, Column, Integer, String, UniqueConstraint, true

from models.base import Base


class UrlRewrite(Base):
    """
    Storefront URL rewrite mapping a human-readable request path to an entity.
    Autogenerated rows are owned by their entity and removed with it.
    """
    __tablename__ = "url_rewrites"
    __table_args__ = (UniqueConstraint("request_path", "store_id", name="uq_url_rewrites_request_path_store"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_type = Column(String(32), nullable=False, index=True)
    entity_id = Column(Integer, nullable=False, index=True)
    request_path = Column(String(255), nullable=False)
    target_path = Column(String(255), nullable=False)
    redirect_type = Column(Integer, nullable=False, server_default="0")
    store_id = Column(Integer, nullable=False, server_default="1")
    is_autogenerated = Column(Boolean, nullable=False, default=True, server_default=true())
