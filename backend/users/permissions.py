from rest_framework import permissions
from .models import User


class IsAdminOrHigher(permissions.BasePermission):
    def has_permission(self, request, view):
        return request.user.role in [User.Role.OWNER, User.Role.ADMIN]


class IsKitchenOrHigher(permissions.BasePermission):
    def has_permission(self, request, view):
        return request.user.role in [
            User.Role.OWNER,
            User.Role.ADMIN,
            User.Role.KITCHEN,
        ]
