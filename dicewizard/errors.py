class CampaignError(Exception):
    """Base exception for every typed failure of the campaign core"""
    kind = "Error"
    status_code = 500
    default_message = "campaign error"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


# ==================== NotFound ====================

class NotFound(CampaignError):
    kind = "NotFound"
    status_code = 404
    default_message = "not found"


class CampaignNotFound(NotFound):
    default_message = "campaign not found"


class InviteNotFound(NotFound):
    default_message = "invite not found"


class CharacterNotFound(NotFound):
    default_message = "character not found"


class SceneNotFound(NotFound):
    default_message = "scene not found"


class CampaignMapNotFound(NotFound):
    default_message = "campaign map not found"


class TokenNotFound(NotFound):
    default_message = "token not found"


class MemberNotFound(NotFound):
    default_message = "member not found"


class UserNotFound(NotFound):
    default_message = "user not found"


# ==================== access ====================

class NotCampaignMember(CampaignError):
    kind = "NotCampaignMember"
    status_code = 403
    default_message = "user is not a campaign member"


class NotPermitted(CampaignError):
    kind = "NotPermitted"
    status_code = 403
    default_message = "user is not permitted for this campaign"


class CharacterNotOwned(CampaignError):
    kind = "CharacterNotOwned"
    status_code = 403
    default_message = "character not owned by user"


class AuthenticationFailed(CampaignError):
    kind = "Unauthenticated"
    status_code = 401
    default_message = "invalid credentials"


# ==================== conflicts ====================

class AlreadyExists(CampaignError):
    kind = "AlreadyExists"
    status_code = 409
    default_message = "already exists"


class CampaignCharacterExists(AlreadyExists):
    default_message = "character already in campaign"


class SceneMapExists(AlreadyExists):
    default_message = "scene already has a map"


class UserExists(AlreadyExists):
    default_message = "username already taken"


class InviteCodeUnavailable(AlreadyExists):
    default_message = "could not allocate a unique invite code"


class AlreadyMember(CampaignError):
    kind = "AlreadyMember"
    status_code = 409
    default_message = "user is already a member"


# ==================== invalid values ====================

class InvalidStatus(CampaignError):
    kind = "InvalidStatus"
    status_code = 400
    default_message = "invalid value"


class InvalidCampaignStatus(InvalidStatus):
    default_message = "invalid campaign status"


class InvalidVisibility(InvalidStatus):
    default_message = "invalid campaign visibility"


class InvalidRole(InvalidStatus):
    default_message = "invalid role"


class InvalidLayer(InvalidStatus):
    default_message = "invalid token layer"


class InvalidNoteTarget(InvalidStatus):
    default_message = "invalid note target"


class InvalidMemberTransition(InvalidStatus):
    """Raised when a membership status change is not allowed"""

    def __init__(self, message: str = None, current_status: str = "", target_status: str = ""):
        super().__init__(message or f"cannot move member from {current_status} to {target_status}")
        self.current_status = current_status
        self.target_status = target_status


# ==================== invite terminal states ====================

class InviteExpired(CampaignError):
    kind = "Expired"
    status_code = 410
    default_message = "invite expired"


class InviteRedeemed(CampaignError):
    kind = "AlreadyRedeemed"
    status_code = 409
    default_message = "invite already redeemed"


class InviteRevoked(InviteRedeemed):
    default_message = "invite revoked"


class InviteAlreadyRevoked(InviteRedeemed):
    """Second revoke of the same invite; carries the unchanged invite"""
    default_message = "invite already revoked"

    def __init__(self, message: str = None, invite=None):
        super().__init__(message)
        self.invite = invite


# ==================== infrastructure ====================

class OperationTimeout(CampaignError):
    kind = "Timeout"
    status_code = 504
    default_message = "operation timed out"
