from rest_framework.permissions import BasePermission


def managed_enterprise_ids(user):
    if not user or not user.is_authenticated:
        return []
    return list(user.enterprises.values_list("id", flat=True))


class IsStaffOrEnterpriseManager(BasePermission):
    """
    Admins, plus users managing at least one enterprise.
    """

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return user.is_staff or user.enterprises.exists()
