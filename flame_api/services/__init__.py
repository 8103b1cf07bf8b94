from .auth_service import AuthService, get_auth_service
from .conversation_service import ConversationGate, get_conversation_gate
from .interaction_service import InteractionService, MatchPromoter, get_interaction_service
from .match_service import MatchService, get_match_service
from .profile_service import AccountService, ProfileService, get_account_service, get_profile_service
from .upload_service import UploadService, build_upload_service

__all__ = [
    "AccountService",
    "AuthService",
    "ConversationGate",
    "InteractionService",
    "MatchPromoter",
    "MatchService",
    "ProfileService",
    "UploadService",
    "build_upload_service",
    "get_account_service",
    "get_auth_service",
    "get_conversation_gate",
    "get_interaction_service",
    "get_match_service",
    "get_profile_service",
]
