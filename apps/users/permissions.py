from rest_framework.exceptions import PermissionDenied


def can_view_program(user, program):
    """Admins, the program's coach and the program's client."""
    return bool(
        user and (
            user.is_admin
            or program.coach_id == user.pk
            or program.client_id == user.pk
        )
    )


def can_manage_program(user, program):
    """Admins and the program's coach."""
    return bool(user and (user.is_admin or program.coach_id == user.pk))


def require_program_viewer(user, program):
    if not can_view_program(user, program):
        raise PermissionDenied("You do not have access to this program.")


def require_program_manager(user, program):
    if not can_manage_program(user, program):
        raise PermissionDenied("Only the program's coach can modify it.")
