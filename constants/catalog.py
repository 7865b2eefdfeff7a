"""
Catalog constants: reserved category ids, attribute codes and attribute groups.
"""

from constants.acl import EDIT_CATEGORY_DESIGN

TREE_ROOT_ID = 1
DEFAULT_ROOT_ID = 2
RESERVED_CATEGORY_IDS = frozenset({TREE_ROOT_ID, DEFAULT_ROOT_ID})

# Categories at or above this level do not contribute to storefront URLs
URL_ROOT_LEVEL = 1

SORT_BY_OPTIONS = ("position", "name", "price")

URL_KEY = "url_key"

DESIGN_ATTRIBUTES = (
    "custom_use_parent_settings",
    "custom_apply_to_products",
    "custom_design",
    "custom_design_from",
    "custom_design_to",
    "custom_layout_update",
    "page_layout",
)

CATEGORY_ATTRIBUTES = (
    "description",
    URL_KEY,
    "url_path",
    "meta_title",
    "meta_keywords",
    "meta_description",
    "display_mode",
    "landing_page",
    "is_anchor",
    "default_sort_by",
) + DESIGN_ATTRIBUTES

# group name -> (attribute codes, ACL resources required to change them)
ATTRIBUTE_GROUPS = {
    "design": (frozenset(DESIGN_ATTRIBUTES), frozenset({EDIT_CATEGORY_DESIGN})),
}

URL_REWRITE_ENTITY_TYPE = "category"
