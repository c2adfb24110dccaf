from rest_framework import permissions


class IsOrganizer(permissions.BasePermission):
    """
    Allows access only to users whose role is 'organizer' and who have an
    organizer profile.
    """
    message = 'Only organizers can perform this action.'

    def has_permission(self, request, view):
        user = request.user
        return bool(
            user and user.is_authenticated
            and getattr(user, 'role', None) == 'organizer'
            and hasattr(user, 'organizer_profile')
        )


class IsParticipant(permissions.BasePermission):
    """
    Allows access only to users whose role is 'participant'.
    """
    message = 'Only participants can perform this action.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, 'role', None) == 'participant')
