"""
ACL resource identifiers granted to roles through authorization rules.
"""

ALL = "all"
CATEGORIES = "categories"
EDIT_CATEGORY_DESIGN = "edit_category_design"
URL_REWRITES = "url_rewrites"
ACL_ROLES = "acl_roles"
ACL_USERS = "acl_users"

RESOURCES = (ALL, CATEGORIES, EDIT_CATEGORY_DESIGN, URL_REWRITES, ACL_ROLES, ACL_USERS)

ADMINISTRATORS_ROLE = "Administrators"
