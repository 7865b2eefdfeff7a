from models.user import User


def sanitize_user(user: User) -> dict:
    """
    Convert a User ORM object into a public-safe dict.
    """
    data = user.to_public_dict()
    for key in ("created_at", "updated_at"):
        if data.get(key) is not None:
            data[key] = str(data[key])
    return data
