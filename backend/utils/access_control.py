from sajag.models import RoleEnum

# Roles allowed to register and edit training programs. field_officer is not one of them.
TRAINING_CREATOR_ROLES = {
    RoleEnum.admin,
    RoleEnum.ndma_official,
    RoleEnum.sdma_official,
    RoleEnum.ati_coordinator,
    RoleEnum.ngo_coordinator,
}

def role_name(profile):
    if not profile or not profile.role:
        return ""
    role = profile.role
    return role.value if isinstance(role, RoleEnum) else str(role)

def can_create_training(profile):
    """
    True when the profile's role may create or edit training programs.
    Unknown or missing roles are treated as unprivileged.
    """
    try:
        return RoleEnum(role_name(profile)) in TRAINING_CREATOR_ROLES
    except ValueError:
        return False
