ADMIN_GROUP = 'Admin'


def is_admin_user(user):
    """Superusers, staff and members of the Admin group may delete shared records"""
    if not user or not user.is_authenticated:
        return False
    return user.is_superuser or user.is_staff or user.groups.filter(name=ADMIN_GROUP).exists()
