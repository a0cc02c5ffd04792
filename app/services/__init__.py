from .user_service import get_user_by_id, get_user_creation_date
from .similarity_service import calculate_similarity, get_similarity_reason, rank_events_by_similarity
from .generation_service import generate_all_notifications

__all__ = ["get_user_by_id", "get_user_creation_date", "calculate_similarity", "get_similarity_reason", "rank_events_by_similarity", "generate_all_notifications"]
